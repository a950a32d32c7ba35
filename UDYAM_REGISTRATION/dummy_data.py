import json
import random
from datetime import timedelta
from faker import Faker
from sqlalchemy import delete
from core.database import SessionLocal, Base, engine
from models.otp_log import OtpLog
from models.pan_verification import PanVerificationLog
from models.form_submission import FormSubmission, SubmissionStatus
from models.audit_log import AuditLog
from services.submission_service import generate_application_id
from utils.timestamps import utcnow

Base.metadata.create_all(bind=engine, checkfirst=True)

MIN_AGE = 18
MAX_AGE = 60
SUBMISSION_COUNT = 40

STATUS_WEIGHTS = [
    (SubmissionStatus.SUBMITTED, 2),
    (SubmissionStatus.PROCESSING, 3),
    (SubmissionStatus.APPROVED, 6),
    (SubmissionStatus.REJECTED, 1),
]

fake = Faker("en_IN")
db = SessionLocal()

random.seed(42)
Faker.seed(42)


def make_pan(name: str) -> str:
    letters = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    surname_initial = name.split()[-1][0].upper()
    first_three = "".join(random.choices(letters, k=3))
    digits = "".join(random.choices("0123456789", k=4))
    return f"{first_three}P{surname_initial}{digits}{random.choice(letters)}"


def make_aadhaar() -> str:
    return str(random.randint(2, 9)) + "".join(random.choices("0123456789", k=11))


def make_mobile() -> str:
    return random.choice("6789") + "".join(random.choices("0123456789", k=9))


def pick_status() -> SubmissionStatus:
    statuses, weights = zip(*STATUS_WEIGHTS)
    return random.choices(statuses, weights=weights, k=1)[0]


print("Clearing existing demo data...")
db.execute(delete(AuditLog))
db.execute(delete(FormSubmission))
db.execute(delete(PanVerificationLog))
db.execute(delete(OtpLog))
db.commit()
print("Cleared.")

try:
    for _ in range(SUBMISSION_COUNT):
        name = fake.name().upper()
        dob = fake.date_of_birth(minimum_age=MIN_AGE, maximum_age=MAX_AGE)
        aadhaar = make_aadhaar()
        mobile = make_mobile()
        pan = make_pan(name)
        submitted_at = utcnow() - timedelta(days=random.randint(0, 30), minutes=random.randint(0, 1439))
        status = pick_status()
        application_id = generate_application_id()

        db.add(OtpLog(
            aadhaar=aadhaar,
            mobile=mobile,
            status="VERIFIED",
            expiry_time=submitted_at + timedelta(minutes=5),
            verified_at=submitted_at - timedelta(minutes=5),
            created_at=submitted_at - timedelta(minutes=5),
        ))
        db.add(PanVerificationLog(
            pan=pan,
            pan_holder_name=name,
            date_of_birth=dob,
            status="VERIFIED",
            match_percentage=100.0,
            created_at=submitted_at - timedelta(minutes=2),
        ))
        db.add(FormSubmission(
            application_id=application_id,
            aadhaar=aadhaar,
            mobile=mobile,
            pan=pan,
            pan_holder_name=name,
            date_of_birth=dob,
            status=status,
            submission_data=json.dumps({"aadhaar": aadhaar, "mobile": mobile, "pan": pan,
                                        "panHolderName": name, "dateOfBirth": dob.isoformat()}),
            submitted_at=submitted_at,
            approved_at=submitted_at + timedelta(days=2) if status == SubmissionStatus.APPROVED else None,
            ip_address=fake.ipv4(),
            user_agent=fake.user_agent(),
            created_at=submitted_at,
            updated_at=submitted_at,
        ))
        db.add(AuditLog(
            application_id=application_id,
            action="FORM_SUBMITTED",
            details=json.dumps({"aadhaar": aadhaar, "mobile": mobile, "pan": pan}),
            timestamp=submitted_at,
        ))

    db.commit()
    print(f"Seeded {SUBMISSION_COUNT} demo submissions.")

except Exception as e:
    db.rollback()
    print(f"\nERROR: {e}")
    raise

finally:
    db.close()
