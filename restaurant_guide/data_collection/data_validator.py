"""
Presence checks for Airtable responses.

Only the keys the client relies on are checked; field values inside a
record are never validated.
"""
from typing import Any, Dict, List, Tuple


class DataValidator:
    """Validator for Airtable list and single-record payloads."""

    def validate_page(self, payload: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """Validate a list response: {records: [{id, fields}], offset?}."""
        errors = []

        if "records" not in payload:
            errors.append("Missing required field: records")
            return False, errors

        records = payload["records"]
        if not isinstance(records, list):
            errors.append("Field 'records' is not a list")
            return False, errors

        for position, record in enumerate(records):
            is_valid, record_errors = self.validate_record(record)
            if not is_valid:
                errors.extend(f"records[{position}]: {error}" for error in record_errors)

        offset = payload.get("offset")
        if offset is not None and not isinstance(offset, str):
            errors.append("Field 'offset' is not a string")

        return len(errors) == 0, errors

    def validate_record(self, record: Any) -> Tuple[bool, List[str]]:
        """Validate one record from a list response."""
        errors = []

        if not isinstance(record, dict):
            return False, ["Record is not an object"]

        record_id = record.get("id")
        if not isinstance(record_id, str) or not record_id:
            errors.append("Missing required field: id")

        if not isinstance(record.get("fields"), dict):
            errors.append("Missing required field: fields")

        return len(errors) == 0, errors

    def validate_single_record(self, payload: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """Validate a single-record response; only `fields` is required."""
        if not isinstance(payload.get("fields"), dict):
            return False, ["Missing required field: fields"]
        return True, []
