# Import models in dependency order
from app.database.models.auth import Student, Admin
from app.database.models.applicant import Applicant, ApplicantNote
from app.database.models.payment import Payment
from app.database.models.contact import Contact, ContactStatus

__all__ = [
    "Student",
    "Admin",
    "Applicant",
    "ApplicantNote",
    "Payment",
    "Contact",
    "ContactStatus",
]
