from collections import Counter
from typing import List, Optional

from pydantic import BaseModel


class ToolOutput(BaseModel):
    """Raw outcome of one tool process."""

    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""


class DeleteResult(BaseModel):
    deleted_paths: List[str] = []
    not_found_paths: List[str] = []
    errors: List[str] = []

    def merge_with(self, other: "DeleteResult") -> "DeleteResult":
        """Concatenate outcomes; neither operand is modified."""
        return DeleteResult(
            deleted_paths=self.deleted_paths + other.deleted_paths,
            not_found_paths=self.not_found_paths + other.not_found_paths,
            errors=self.errors + other.errors,
        )

    @property
    def outcome_count(self) -> int:
        return len(self.deleted_paths) + len(self.not_found_paths) + len(self.errors)

    def is_equivalent_to(self, other: "DeleteResult") -> bool:
        """Equality of the outcome multisets, ignoring order."""
        return (
            Counter(self.deleted_paths) == Counter(other.deleted_paths)
            and Counter(self.not_found_paths) == Counter(other.not_found_paths)
            and Counter(self.errors) == Counter(other.errors)
        )


class CheckoutResult(BaseModel):
    checked_out_files: List[str] = []
    not_found_files: List[str] = []
    errors: List[str] = []

    def merge_with(self, other: "CheckoutResult") -> "CheckoutResult":
        return CheckoutResult(
            checked_out_files=self.checked_out_files + other.checked_out_files,
            not_found_files=self.not_found_files + other.not_found_files,
            errors=self.errors + other.errors,
        )

    def is_equivalent_to(self, other: "CheckoutResult") -> bool:
        return (
            Counter(self.checked_out_files) == Counter(other.checked_out_files)
            and Counter(self.not_found_files) == Counter(other.not_found_files)
            and Counter(self.errors) == Counter(other.errors)
        )


class ValidationInfo(BaseModel):
    """Outcome of validating editable state. ``field`` is ``None`` when valid."""

    field: Optional[str] = None
    message_key: Optional[str] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.field is None


NO_ERRORS = ValidationInfo()
