# Centralized collection names to prevent drift.

COL_DOCTORS = "doctors"
COL_USERS = "users"
COL_SPECIALTIES = "specialties"  # specialties/{specialty_key}
COL_REVIEWS = "reviews"
COL_APPOINTMENTS = "appointments"

# Order matters only for logging/reporting; presence checks are set-based.
REQUIRED_COLLECTIONS = (
    COL_DOCTORS,
    COL_USERS,
    COL_SPECIALTIES,
    COL_REVIEWS,
    COL_APPOINTMENTS,
)

# Whitespace in specialty names is replaced by this to build store keys.
SPECIALTY_KEY_SEPARATOR = "_"

SPECIALTIES = (
    "General Practitioner",
    "Pediatrician",
    "Dermatologist",
    "Cardiologist",
    "Neurologist",
    "Psychiatrist",
    "Orthopedist",
    "Gynecologist",
    "Ophthalmologist",
    "Dentist",
    "Otolaryngologist",
    "Endocrinologist",
    "Gastroenterologist",
    "Urologist",
    "Nephrologist",
    "Oncologist",
    "Neurosurgeon",
    "Plastic Surgeon",
    "Radiologist",
    "Pathologist",
)
