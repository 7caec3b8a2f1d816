"""Demo data: one patient with records from three hospitals.

Seeding is idempotent. The patient, organizations and employees are
updated in place; the patient's records and providers are replaced.
"""

from datetime import date
from typing import Any, Dict, List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from evexia.access.scope import FULL_SCOPE, RecordCategory
from evexia.models import Employee, MedicalRecord, Organization, Patient, PatientProvider
from evexia.services import PatientService
from evexia.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_PATIENT: Dict[str, Any] = {
    "name": "Maria Santos",
    "email": "demo@evexia.health",
    "date_of_birth": date(1985, 3, 15),
    "phone": "555-123-4567",
}

DEMO_ORGANIZATIONS = [
    {"slug": "banner-health", "name": "Banner Health"},
    {"slug": "mayo-clinic", "name": "Mayo Clinic"},
    {"slug": "phoenician-medical", "name": "Phoenician Medical Center"},
]

# EMP-001 exists at two organizations on purpose
DEMO_EMPLOYEES = [
    {
        "employee_id": "EMP-001",
        "name": "Dr. Sarah Chen",
        "org_slug": "banner-health",
        "email": "sarah.chen@bannerhealth.example",
        "department": "Primary Care",
    },
    {
        "employee_id": "EMP-001",
        "name": "Dr. John Smith",
        "org_slug": "mayo-clinic",
        "email": "john.smith@mayoclinic.example",
        "department": "Internal Medicine",
    },
    {
        "employee_id": "EMP-002",
        "name": "Dr. Michael Rivera",
        "org_slug": "mayo-clinic",
        "email": "michael.rivera@mayoclinic.example",
        "department": "Cardiology",
        "is_emergency_staff": True,
    },
    {
        "employee_id": "EMP-003",
        "name": "Dr. Emily Watson",
        "org_slug": "phoenician-medical",
        "email": "emily.watson@phoenicianmed.example",
        "department": "Endocrinology",
    },
]

VITALS = {
    "Banner Health": [
        {"date": "2024-01-15", "bmi": 26.5, "blood_pressure": "128/82", "heart_rate": 72, "weight": 165},
        {"date": "2024-04-20", "bmi": 26.2, "blood_pressure": "125/80", "heart_rate": 70, "weight": 163},
        {"date": "2024-07-10", "bmi": 25.8, "blood_pressure": "122/78", "heart_rate": 68, "weight": 160},
        {"date": "2024-10-05", "bmi": 25.5, "blood_pressure": "120/76", "heart_rate": 66, "weight": 158},
    ],
    "Mayo Clinic": [
        {"date": "2024-02-28", "bmi": 26.3, "blood_pressure": "126/81", "heart_rate": 71, "weight": 164},
        {"date": "2024-08-15", "bmi": 25.6, "blood_pressure": "121/77", "heart_rate": 67, "weight": 159},
    ],
}

LABS = {
    "Banner Health": [
        {"date": "2024-01-15", "total_cholesterol": 215, "a1c": 6.2, "ldl": 130, "hdl": 45, "triglycerides": 180},
        {"date": "2024-07-10", "total_cholesterol": 205, "a1c": 6.0, "ldl": 122, "hdl": 48, "triglycerides": 165},
    ],
    "Mayo Clinic": [
        {"date": "2024-02-28", "total_cholesterol": 210, "a1c": 6.1, "ldl": 126, "hdl": 46, "triglycerides": 175},
        {"date": "2024-08-15", "total_cholesterol": 198, "a1c": 5.9, "ldl": 118, "hdl": 50, "triglycerides": 155},
    ],
    "Phoenician Medical Center": [
        {"date": "2024-05-20", "total_cholesterol": 208, "a1c": 6.0, "ldl": 124, "hdl": 47, "triglycerides": 170},
    ],
}

MEDS = {
    "Banner Health": [
        {"medication": "Lisinopril", "dose": "10mg", "frequency": "Once daily", "startDate": "2023-06-01", "indication": "Hypertension"},
        {"medication": "Metformin", "dose": "500mg", "frequency": "Twice daily", "startDate": "2023-08-15", "indication": "Prediabetes"},
    ],
    "Mayo Clinic": [
        {"medication": "Atorvastatin", "dose": "20mg", "frequency": "Once daily at bedtime", "startDate": "2024-01-20", "indication": "Hyperlipidemia"},
    ],
}

ENCOUNTERS = {
    "Banner Health": [
        {"date": "2024-01-15", "type": "Annual Physical", "provider": "Dr. Sarah Chen",
         "notes": "Routine checkup, discussed weight management and lifestyle changes"},
        {"date": "2024-07-10", "type": "Follow-up Visit", "provider": "Dr. Sarah Chen",
         "notes": "Good progress on lifestyle changes, weight down 5 lbs, continue current medications"},
    ],
    "Mayo Clinic": [
        {"date": "2024-02-28", "type": "Cardiology Consult", "provider": "Dr. Michael Rivera",
         "notes": "Cardiovascular risk assessment, recommended statin therapy, lifestyle modifications"},
        {"date": "2024-08-15", "type": "Cardiology Follow-up", "provider": "Dr. Michael Rivera",
         "notes": "Lipid panel improved significantly, continue current regimen, recheck in 6 months"},
    ],
    "Phoenician Medical Center": [
        {"date": "2024-05-20", "type": "Endocrinology Consult", "provider": "Dr. Emily Watson",
         "notes": "A1C monitoring for prediabetes, metformin working well, dietary counseling provided"},
    ],
}


def _records(
    patient: Patient, category: RecordCategory, by_hospital: Dict[str, List[Dict[str, Any]]]
) -> List[MedicalRecord]:
    date_key = "startDate" if category == RecordCategory.MEDS else "date"
    return [
        MedicalRecord(
            patient_id=patient.id,
            hospital=hospital,
            category=category.value,
            data=dict(entry),
            record_date=date.fromisoformat(entry[date_key]),
            source="seed",
        )
        for hospital, entries in by_hospital.items()
        for entry in entries
    ]


def _upsert_patient(session: Session) -> Patient:
    patient = PatientService(session).get_by_email(DEMO_PATIENT["email"])
    if patient is None:
        patient = Patient(**DEMO_PATIENT)
        patient.save(session)
        logger.info("demo_patient_created", patient_id=str(patient.id))
    else:
        for field, value in DEMO_PATIENT.items():
            setattr(patient, field, value)
        session.flush()
        logger.info("demo_patient_updated", patient_id=str(patient.id))
    return patient


def _upsert_organizations(session: Session) -> Dict[str, Organization]:
    organizations: Dict[str, Organization] = {}
    for entry in DEMO_ORGANIZATIONS:
        organization = session.scalars(
            select(Organization).where(Organization.slug == entry["slug"])
        ).first()
        if organization is None:
            organization = Organization(slug=entry["slug"], name=entry["name"], is_active=True)
            organization.save(session)
        else:
            organization.name = entry["name"]
        organizations[entry["slug"]] = organization
    session.flush()
    return organizations


def _upsert_employees(
    session: Session, organizations: Dict[str, Organization]
) -> Dict[str, Employee]:
    employees: Dict[str, Employee] = {}
    for entry in DEMO_EMPLOYEES:
        organization = organizations[entry["org_slug"]]
        employee = session.scalars(
            select(Employee).where(
                Employee.employee_id == entry["employee_id"],
                Employee.organization_id == organization.id,
            )
        ).first()
        fields = {
            "name": entry["name"],
            "email": entry["email"],
            "department": entry["department"],
            "is_active": True,
            "is_emergency_staff": entry.get("is_emergency_staff", False),
        }
        if employee is None:
            employee = Employee(
                organization_id=organization.id, employee_id=entry["employee_id"], **fields
            )
            employee.save(session)
        else:
            for field, value in fields.items():
                setattr(employee, field, value)
        employees[f"{entry['org_slug']}:{entry['employee_id']}"] = employee
    session.flush()
    return employees


def seed_demo_data(session: Session) -> Patient:
    """Load the demo patient, directory and a linked provider."""
    patient = _upsert_patient(session)

    session.execute(delete(MedicalRecord).where(MedicalRecord.patient_id == patient.id))
    records = (
        _records(patient, RecordCategory.VITALS, VITALS)
        + _records(patient, RecordCategory.LABS, LABS)
        + _records(patient, RecordCategory.MEDS, MEDS)
        + _records(patient, RecordCategory.ENCOUNTERS, ENCOUNTERS)
    )
    session.add_all(records)

    organizations = _upsert_organizations(session)
    employees = _upsert_employees(session, organizations)

    session.execute(delete(PatientProvider).where(PatientProvider.patient_id == patient.id))
    sarah_chen = employees["banner-health:EMP-001"]
    PatientProvider(
        patient_id=patient.id,
        employee_id=sarah_chen.id,
        provider_name=sarah_chen.name,
        provider_org=organizations["banner-health"].name,
        provider_email=sarah_chen.email,
        scope=list(FULL_SCOPE),
    ).save(session)

    logger.info(
        "demo_data_seeded",
        patient_id=str(patient.id),
        records=len(records),
        organizations=len(organizations),
        employees=len(employees),
    )
    return patient
