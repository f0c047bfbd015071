"""
User address book.
"""
from typing import List, Optional

from bson import ObjectId
from pymongo.database import Database

from database import create_document, now, to_object_id
from errors import NotFoundError, ValidationError
from payloads import AddressDTO, AddressRequest
from schemas import Address

# field -> (label, minimum length)
ADDRESS_RULES = {
    "country": ("country", 2),
    "city": ("city", 4),
    "street": ("street", 5),
    "pin_code": ("pin code", 5),
    "building_name": ("building name", 5),
    "state": ("state", 2),
}


def validate_field(value: Optional[str], min_length: int, label: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"The value of '{label}' cannot be empty.")
    if len(value.strip()) < min_length:
        raise ValidationError(f"The value of '{label}' must be at least {min_length} characters.")
    return value


def validate_address(request: AddressRequest) -> dict:
    data = request.model_dump()
    return {
        field: validate_field(data.get(field), min_length, label)
        for field, (label, min_length) in ADDRESS_RULES.items()
    }


def get_address_doc(db: Database, address_id: str) -> dict:
    address = db["address"].find_one({"_id": to_object_id(address_id)})
    if not address:
        raise NotFoundError.for_field("Address", "addressId", address_id)
    return address


def create_address(db: Database, request: AddressRequest, user: dict) -> AddressDTO:
    fields = validate_address(request)
    address_id = create_document(db, "address", Address(user_id=str(user["_id"]), **fields))
    return AddressDTO.from_doc(db["address"].find_one({"_id": ObjectId(address_id)}))


def list_addresses(db: Database) -> List[AddressDTO]:
    addresses = list(db["address"].find({}))
    if not addresses:
        raise NotFoundError("No addresses available.")
    return [AddressDTO.from_doc(a) for a in addresses]


def get_address(db: Database, address_id: str) -> AddressDTO:
    return AddressDTO.from_doc(get_address_doc(db, address_id))


def user_addresses(db: Database, user: dict) -> List[AddressDTO]:
    addresses = list(db["address"].find({"user_id": str(user["_id"])}))
    if not addresses:
        raise NotFoundError("No addresses available.")
    return [AddressDTO.from_doc(a) for a in addresses]


def update_address(db: Database, address_id: str, request: AddressRequest) -> AddressDTO:
    address = get_address_doc(db, address_id)
    fields = validate_address(request)
    db["address"].update_one({"_id": address["_id"]}, {"$set": {**fields, "updated_at": now()}})
    address.update(fields)
    return AddressDTO.from_doc(address)


def delete_address(db: Database, address_id: str) -> AddressDTO:
    address = get_address_doc(db, address_id)
    db["address"].delete_one({"_id": address["_id"]})
    return AddressDTO.from_doc(address)
