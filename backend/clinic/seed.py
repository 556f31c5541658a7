"""Default dataset written to empty storage on first start."""

INITIAL_USERS = [
    {"id": "1", "role": "Admin", "email": "admin@entnt.in", "password": "admin123", "name": "Dr. Sarah Wilson"},
    {"id": "2", "role": "Patient", "email": "john@entnt.in", "password": "patient123", "patientId": "p1", "name": "John Doe"},
    {"id": "3", "role": "Patient", "email": "jane@entnt.in", "password": "patient123", "patientId": "p2", "name": "Jane Smith"},
]

INITIAL_PATIENTS = [
    {
        "id": "p1",
        "name": "John Doe",
        "dob": "1990-05-10",
        "contact": "1234567890",
        "email": "john@entnt.in",
        "healthInfo": "No known allergies",
    },
    {
        "id": "p2",
        "name": "Jane Smith",
        "dob": "1985-08-22",
        "contact": "0987654321",
        "email": "jane@entnt.in",
        "healthInfo": "Allergic to penicillin",
    },
    {
        "id": "p3",
        "name": "Mike Johnson",
        "dob": "1978-12-15",
        "contact": "5555555555",
        "email": "mike@entnt.in",
        "healthInfo": "Diabetes type 2",
    },
]

INITIAL_INCIDENTS = [
    {
        "id": "i1",
        "patientId": "p1",
        "title": "Routine Cleaning",
        "description": "6-month dental cleaning and checkup",
        "comments": "Good oral hygiene, minor plaque buildup",
        "appointmentDate": "2024-12-30T10:00:00",
        "cost": 120,
        "treatment": "Professional cleaning, fluoride treatment",
        "status": "Completed",
        "nextDate": "2025-06-30",
        "files": [],
    },
    {
        "id": "i2",
        "patientId": "p1",
        "title": "Tooth Pain Consultation",
        "description": "Patient experiencing pain in upper right molar",
        "comments": "Sensitive to cold and pressure",
        "appointmentDate": "2025-01-15T14:30:00",
        "status": "Scheduled",
        "files": [],
    },
    {
        "id": "i3",
        "patientId": "p2",
        "title": "Cavity Filling",
        "description": "Fill cavity in lower left premolar",
        "comments": "Small cavity detected during routine exam",
        "appointmentDate": "2025-01-08T09:00:00",
        "cost": 180,
        "treatment": "Composite filling",
        "status": "Completed",
        "files": [],
    },
    {
        "id": "i4",
        "patientId": "p2",
        "title": "Crown Preparation",
        "description": "Prepare tooth for crown placement",
        "comments": "Damaged tooth requires crown",
        "appointmentDate": "2025-01-20T11:00:00",
        "status": "Scheduled",
        "files": [],
    },
]
