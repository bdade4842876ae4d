"""User-initiated clinic actions.

Every action catches API errors at this call site and turns them into an
ActionResult plus (for most actions) a transient notification carrying
the server's message, or a generic fallback. Login and doctor sign-up
report failures inline instead (``ActionResult.message``).
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple, Union

import pydantic

from medicore.api import ClinicApi
from medicore.checkout import CheckoutAdapter
from medicore.errors import MediCoreError, ValidationError, user_message
from medicore.guard import home_route_for
from medicore.logging_config import get_logger
from medicore.models import PaymentStatus, Visit
from medicore.notifications import Notifier
from medicore.session_store import SessionStore
from medicore.validation import FormValidator

logger = get_logger(__name__)


@dataclass
class ActionResult:
    ok: bool
    message: str = ""
    data: Any = None


class ClinicActions:
    """Actions behind the login, counter, doctor and settings screens."""

    def __init__(self, api: ClinicApi, store: SessionStore, notifier: Notifier):
        self.api = api
        self.store = store
        self.notifier = notifier

    def _run(
        self,
        name: str,
        fn: Callable[[], Any],
        fallback: str,
        success: Union[str, Callable[[Any], str], None] = None,
        inline: bool = False,
    ) -> ActionResult:
        try:
            data = fn()
        except ValidationError as e:
            if not inline:
                self.notifier.warning(e.message)
            return ActionResult(False, e.message)
        except (MediCoreError, pydantic.ValidationError) as e:
            message = user_message(e, fallback)
            logger.info("action_failed", action=name, error=str(e))
            if not inline:
                self.notifier.error(message)
            return ActionResult(False, message)

        message = success(data) if callable(success) else (success or "")
        if message and not inline:
            self.notifier.success(message)
        return ActionResult(True, message, data)

    # Authentication

    def login(self, email: str, password: str) -> ActionResult:
        """Log in; ``data`` is the landing route for the user's role."""
        def do():
            FormValidator.validate_login(email, password)
            session = self.store.login(email, password)
            return home_route_for(session.role)

        return self._run("login", do, "Invalid email or password. Please try again.", inline=True)

    def logout(self) -> ActionResult:
        self.store.logout()
        return ActionResult(True, data="/login")

    def register_doctor(
        self,
        name: str,
        email: str,
        password: str,
        confirm_password: str,
        confirmation_id: str,
    ) -> ActionResult:
        def do():
            FormValidator.validate_doctor_registration(
                name, email, password, confirm_password, confirmation_id
            )
            self.api.auth.register_doctor(name.strip(), email.strip(), password, confirmation_id.strip())

        return self._run(
            "register_doctor",
            do,
            "Registration failed. Please check your Confirmation ID and try again.",
            inline=True,
        )

    def register_counter(self, name: str, email: str, password: str) -> ActionResult:
        def do():
            if not name or not name.strip():
                raise ValidationError("Please enter the staff member's name")
            FormValidator.validate_email(email)
            self.api.auth.register_counter(name.strip(), email.strip(), password)

        return self._run("register_counter", do, "Failed to register staff", "Staff account created")

    # Counter workflow

    def register_patient(self, patient_name: str, age, phone: str) -> ActionResult:
        """Register a walk-in patient; ``data`` is the assigned token number."""
        def do():
            age_value = FormValidator.validate_patient(patient_name, age, phone)
            return self.api.visits.create(patient_name.strip(), age_value, phone.strip()).appointment_number

        return self._run(
            "register_patient",
            do,
            "Registration failed",
            lambda number: f"Registered! Token Number: {number}",
        )

    def bill_details(self, visit_id: str) -> ActionResult:
        return self._run(
            "bill_details",
            lambda: self.api.visits.details(visit_id),
            "Failed to load bill details",
        )

    def today_visits(self, query: str = "") -> ActionResult:
        """Today's patients, optionally filtered by name or token number."""
        def do() -> List[Visit]:
            visits = self.api.visits.today()
            q = query.strip().lower()
            if not q:
                return visits
            return [
                v for v in visits
                if q in v.patient_name.lower() or q in str(v.appointment_number)
            ]

        return self._run("today_visits", do, "Failed to load today's patients")

    # Doctor workflow

    def call_next_patient(self) -> ActionResult:
        return self._run("call_next_patient", self.api.visits.next_patient, "Failed to call next patient")

    def complete_visit(self, visit_id: str, diagnosis: str, prescription: str) -> ActionResult:
        return self._run(
            "complete_visit",
            lambda: self.api.visits.complete(visit_id, diagnosis, prescription),
            "Failed to save treatment",
            "Treatment saved",
        )

    def patient_history(self, phone: str) -> ActionResult:
        return self._run(
            "patient_history",
            lambda: self.api.visits.history(phone),
            "Failed to load patient history",
        )

    # Templates

    def load_templates(self) -> ActionResult:
        return self._run("load_templates", self.api.templates.list, "Failed to load templates")

    def search_template_image(self, query: str) -> ActionResult:
        def do():
            if not query or not query.strip():
                raise ValidationError("Please enter a medicine name")
            image_url = self.api.templates.search_image(query.strip())
            if not image_url:
                raise ValidationError("No image found. Try a different name.")
            return image_url

        return self._run("search_template_image", do, "No image found. Try a different name.", "Image found!")

    def save_template(self, name: str, image_url: Optional[str] = None) -> ActionResult:
        def do():
            if not name or not name.strip():
                raise ValidationError("Name is required")
            return self.api.templates.create(name.strip(), image_url)

        return self._run("save_template", do, "Failed to save template", "Template saved successfully")

    def delete_template(self, template_id: str) -> ActionResult:
        return self._run(
            "delete_template",
            lambda: self.api.templates.delete(template_id),
            "Failed to delete",
            "Deleted successfully",
        )

    # Staff (doctor only)

    def load_staff(self) -> ActionResult:
        return self._run("load_staff", self.api.staff.list, "Failed to fetch staff")

    def add_staff(self, name: str, email: str, password: str) -> ActionResult:
        def do():
            FormValidator.validate_email(email)
            return self.api.staff.create(name, email, password)

        return self._run("add_staff", do, "Failed to add staff member", "Staff member added")

    def remove_staff(self, staff_id: str) -> ActionResult:
        return self._run(
            "remove_staff",
            lambda: self.api.staff.delete(staff_id),
            "Failed to remove staff member",
            "Staff member removed",
        )

    def toggle_staff(self, staff_id: str) -> ActionResult:
        return self._run(
            "toggle_staff",
            lambda: self.api.staff.toggle_status(staff_id),
            "Failed to update staff status",
            lambda member: "Staff member activated" if member.is_active else "Staff member deactivated",
        )

    # Profile & security

    def update_profile(
        self,
        name: str,
        clinic_name: str,
        clinic_address: str,
        profile_image: Optional[Tuple[str, bytes]] = None,
    ) -> ActionResult:
        loading_id = self.notifier.loading("Updating profile...")

        def do():
            identity = self.api.auth.update_profile(name, clinic_name, clinic_address, profile_image)
            return self.store.apply_profile(identity)

        try:
            return self._run("update_profile", do, "Failed to update profile", "Profile updated successfully!")
        finally:
            self.notifier.dismiss(loading_id)

    def change_password(self, old_password: str, new_password: str, confirm_password: str) -> ActionResult:
        def do():
            if new_password != confirm_password:
                raise ValidationError("New passwords do not match")
            self.api.auth.change_password(old_password, new_password)

        return self._run("change_password", do, "Failed to change password", "Password changed successfully")

    def send_reset_otp(self, email: str) -> ActionResult:
        def do():
            if not email:
                raise ValidationError("Please enter email")
            self.api.auth.send_forgot_password_otp(email)

        return self._run("send_reset_otp", do, "Failed to send OTP", f"OTP sent to {email}")

    def reset_password(self, email: str, otp: str, new_password: str, confirm_password: str) -> ActionResult:
        def do():
            FormValidator.validate_otp(otp)
            FormValidator.validate_new_password(new_password, confirm_password)
            self.api.auth.reset_password(email, otp, new_password)

        return self._run(
            "reset_password",
            do,
            "Invalid OTP or error occurred",
            "Password reset successfully! Please login again if needed.",
        )

    # License payment

    async def pay_license(self, checkout: CheckoutAdapter) -> ActionResult:
        """Run the checkout and report the outcome."""
        try:
            outcome = await checkout.pay()
        except asyncio.TimeoutError:
            message = "Payment window timed out. Please try again."
            self.notifier.error(message)
            return ActionResult(False, message)
        except (MediCoreError, pydantic.ValidationError) as e:
            message = user_message(e, "Failed to initiate payment")
            logger.info("action_failed", action="pay_license", error=str(e))
            self.notifier.error(message)
            return ActionResult(False, message)

        if outcome.status == PaymentStatus.SUCCESS:
            message = "Payment Successful! License Activated."
            self.notifier.success(message)
            return ActionResult(True, message, outcome)
        if outcome.status == PaymentStatus.ERROR:
            message = f"Payment Error: {outcome.error}"
            self.notifier.error(message)
            return ActionResult(False, message, outcome)
        return ActionResult(False, "Payment cancelled", outcome)
