"""Checkout form model."""

from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator


class CheckoutForm(BaseModel):
    """Customer details submitted on the checkout page."""

    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    company: str | None = Field(None, max_length=255)
    city: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)
    email: EmailStr = Field(..., max_length=255)
    email_confirm: str
    terms: bool = Field(False, validate_default=True)

    model_config = {"str_strip_whitespace": True}

    @field_validator("email_confirm")
    @classmethod
    def emails_match(cls, value: str, info: ValidationInfo) -> str:
        email = info.data.get("email")
        # Invalid email is already reported on its own field
        if email is not None and value.lower() != str(email).lower():
            raise ValueError("Email addresses do not match")
        return value

    @field_validator("terms")
    @classmethod
    def terms_accepted(cls, value: bool) -> bool:
        if not value:
            raise ValueError("You must accept the terms and conditions")
        return value
