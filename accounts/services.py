from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError

from .models import Address

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("full_name", "phone", "line1", "landmark", "pincode", "city", "state", "country")

_PHONE_RE = re.compile(r"^\d{10}$")


def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for name in ADDRESS_FIELDS:
        if name in data and data[name] is not None:
            cleaned[name] = str(data[name]).strip()
    if "is_default" in data and data["is_default"] is not None:
        cleaned["is_default"] = bool(data["is_default"])
    return cleaned


def validate_address_input(data: Dict[str, Any], *, partial: bool = False) -> Dict[str, Any]:
    """
    Trim and validate address fields. On create every field is required;
    with ``partial=True`` only the supplied fields are checked.
    Raises ValidationError keyed by field name.
    """
    cleaned = _clean(data)
    errors: Dict[str, str] = {}

    def check(name: str, ok, message: str):
        if partial and name not in cleaned:
            return
        if not ok(cleaned.get(name, "")):
            errors[name] = message

    check("full_name", lambda v: len(v) >= 2, "Enter a name with at least 2 characters.")
    check("phone", lambda v: bool(_PHONE_RE.match(v)), "Phone must be exactly 10 digits.")
    check("line1", lambda v: len(v) >= 4, "Address line must be at least 4 characters.")
    check("pincode", lambda v: len(v) >= 4, "Pincode must be at least 4 characters.")
    check("city", bool, "City is required.")
    check("state", bool, "State is required.")
    check("country", bool, "Country is required.")

    if errors:
        raise ValidationError(errors)
    return cleaned


class AddressBook:
    """
    Per-user address CRUD. Default changes are two sequential writes
    (unset siblings, then set target) without a transaction; a failure
    between them can briefly leave no default, which the next default
    change repairs.
    """

    def __init__(self, user):
        self.user = user

    def _queryset(self):
        return Address.objects.filter(user=self.user)

    def list(self) -> List[Address]:
        return list(self._queryset().order_by("-is_default", "created_at"))

    def get(self, address_id) -> Address:
        return self._queryset().get(pk=address_id)

    def get_default(self) -> Optional[Address]:
        return self._queryset().filter(is_default=True).order_by("created_at").first()

    def _unset_others(self, keep_id=None) -> None:
        qs = self._queryset().filter(is_default=True)
        if keep_id is not None:
            qs = qs.exclude(pk=keep_id)
        qs.update(is_default=False)

    def _promote_first(self, exclude_id=None) -> Optional[Address]:
        qs = self._queryset().order_by("created_at")
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        candidate = qs.first()
        if candidate is not None:
            self.make_default(candidate.pk)
            candidate.is_default = True
        return candidate

    def create(self, data: Dict[str, Any]) -> Address:
        cleaned = validate_address_input(data)
        wants_default = cleaned.pop("is_default", False)
        if not self._queryset().exists():
            # First address is always the default
            wants_default = True
        elif wants_default:
            self._unset_others()

        address = Address.objects.create(user=self.user, is_default=wants_default, **cleaned)
        logger.info("Created address %s for user %s (default=%s)", address.pk, self.user.pk, wants_default)
        return address

    def update(self, address_id, data: Dict[str, Any]) -> Address:
        address = self.get(address_id)
        cleaned = validate_address_input(data, partial=True)
        make_default = cleaned.pop("is_default", None)

        if make_default is True and not address.is_default:
            self._unset_others(keep_id=address.pk)
            address.is_default = True

        for name, value in cleaned.items():
            setattr(address, name, value)
        address.save()

        if make_default is False and address.is_default:
            promoted = self._promote_first(exclude_id=address.pk)
            if promoted is not None:
                address.refresh_from_db(fields=["is_default"])
        return address

    def delete(self, address_id) -> Optional[Address]:
        """Delete an address; returns the newly promoted default, if any."""
        address = self.get(address_id)
        was_default = address.is_default
        address.delete()
        logger.info("Deleted address %s for user %s", address_id, self.user.pk)
        if was_default:
            return self._promote_first()
        return None

    def make_default(self, address_id) -> Address:
        address = self.get(address_id)
        self._unset_others(keep_id=address.pk)
        if not address.is_default:
            address.is_default = True
            address.save(update_fields=["is_default", "updated_at"])
        return address
