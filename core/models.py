from dataclasses import asdict, dataclass, field

# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

# Shape check shared by registration and login. A domain rule -- not an API
# contract. Endpoint-specific error copy lives in core/validation.py.
EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

USA = "USA"
SEX_VALUES = ("male", "female")


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class ValidationResult:
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add(self, error: "ValidationError | None") -> None:
        if error is not None:
            self.errors.append(error)

    def to_list(self) -> list[dict[str, str]]:
        return [e.to_dict() for e in self.errors]
