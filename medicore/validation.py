"""Client-side form validation.

Every check runs before a request is dispatched and raises
ValidationError with the message shown to the user, so no network round
trip is needed for a bad form.
"""
import re
from typing import Dict

from medicore.errors import ValidationError


class FormValidator:
    """
    Validation rules for the clinic forms.

    Pattern: Compiled regexes + static checks, one method per form.
    """

    EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
    OTP_PATTERN = re.compile(r'^\d{4}$')
    SPECIAL_CHAR_PATTERN = re.compile(r'[!@#$%^&*(),.?":{}|<>]')

    @staticmethod
    def password_strength(password: str) -> Dict[str, bool]:
        """
        Evaluate each password requirement separately (for a checklist UI).

        Returns:
            Dict of requirement name -> satisfied
        """
        return {
            "length": len(password) >= 8,
            "uppercase": bool(re.search(r'[A-Z]', password)),
            "lowercase": bool(re.search(r'[a-z]', password)),
            "number": bool(re.search(r'[0-9]', password)),
            "special_char": bool(FormValidator.SPECIAL_CHAR_PATTERN.search(password)),
        }

    @staticmethod
    def is_strong_password(password: str) -> bool:
        return all(FormValidator.password_strength(password).values())

    @staticmethod
    def validate_login(email: str, password: str) -> None:
        if not email or not password:
            raise ValidationError("Please fill in all fields")

    @staticmethod
    def validate_email(email: str) -> None:
        if not email or not email.strip() or not FormValidator.EMAIL_PATTERN.match(email.strip()):
            raise ValidationError("Please enter a valid email address")

    @staticmethod
    def validate_passwords_match(password: str, confirm: str) -> None:
        if password != confirm:
            raise ValidationError("Passwords do not match")

    @staticmethod
    def validate_otp(otp: str) -> None:
        if not FormValidator.OTP_PATTERN.match(otp or ""):
            raise ValidationError("Please enter the 4-digit OTP code")

    @staticmethod
    def validate_new_password(password: str, confirm: str) -> None:
        """Strength first, then match (same order as the reset form)."""
        if not FormValidator.is_strong_password(password):
            raise ValidationError("Password does not meet the security requirements")
        FormValidator.validate_passwords_match(password, confirm)

    @staticmethod
    def validate_doctor_registration(
        name: str,
        email: str,
        password: str,
        confirm_password: str,
        confirmation_id: str
    ) -> None:
        """
        Validate the doctor sign-up form.

        Raises:
            ValidationError: First failing rule, in form order
        """
        if not name or not name.strip():
            raise ValidationError("Please enter your full name")
        FormValidator.validate_email(email)
        if not FormValidator.is_strong_password(password):
            raise ValidationError("Please ensure your password meets all requirements")
        FormValidator.validate_passwords_match(password, confirm_password)
        if not confirmation_id or not confirmation_id.strip():
            raise ValidationError("Confirmation ID is required")

    @staticmethod
    def validate_patient(patient_name: str, age, phone: str) -> int:
        """
        Validate the counter registration form.

        Returns:
            Age as an integer
        """
        if not patient_name or not patient_name.strip():
            raise ValidationError("Patient name is required")
        try:
            age_value = int(age)
        except (TypeError, ValueError):
            raise ValidationError("Age must be a number")
        if age_value < 0 or age_value > 150:
            raise ValidationError("Age must be between 0 and 150")
        if not phone or not re.sub(r'\D', '', phone):
            raise ValidationError("Phone number is required")
        return age_value
