"""
Fixed vocabulary of the paper assessment form.

Row labels are data (they are stored as matrix keys), so they stay in the
form's language.
"""

from enum import Enum

INFECTIOUS_DISEASES = (
    "Tuberculosis",
    "Lepra",
    "Leishmaniasis",
    "Paludismo",
    "Cólera",
    "Dengue",
    "ETS",
    "VIH - SIDA",
)

CHRONIC_DISEASES = (
    "Hipertensión Arterial",
    "Diabetes Mellitus",
    "Artritis",
    "Dislipidemias",
    "Obesidad",
    "Epilepsia",
    "Cáncer",
)

OB_GYN_ITEMS = ("Toma Citología", "Autoexamen Seno", "Planificación", "Embarazo Actual")

VACCINATION_ITEMS = ("Menor 1 año", "1 año", "5 años", "VPH", "COVID-19")

DISABILITY_ITEMS = ("Limitación física", "Limitación mental", "Sordera", "Ceguera")

HABIT_ITEMS = ("Fumar", "Consumo Alcohol", "Consumo Drogas", "Realiza Ejercicio")

PSYCHOLOGICAL_QUESTIONS = (
    "¿Buenas relaciones cordiales?",
    "¿Prácticas recreativas?",
    "¿Niños quedan solos?",
    "¿Corrección adecuada?",
    "¿Separación conyugal?",
)

# Housing flags the operator toggles on step 8
HOUSING_CHECKLIST = (
    "electricity",
    "water_24h",
    "water_treated",
    "gas_cooking",
    "sufficient_light",
    "sufficient_ventilation",
    "pets_indoor",
    "pest_control",
)

STEP_TITLES = {
    1: "Datos Generales",
    2: "Grupo Familiar",
    3: "Antecedentes",
    4: "Discapacidades",
    5: "Hábitos y Riesgos",
    6: "Factor Psicológico",
    7: "Socioeconómico",
    8: "Vivienda",
    9: "Finalización",
}


class MatrixSection(str, Enum):
    """Record sections shaped as condition x member-role matrices."""

    MEDICAL_HISTORY = "medical_history"
    OB_GYN_HISTORY = "ob_gyn_history"
    VACCINATION_HISTORY = "vaccination_history"
    SURGICAL_HISTORY = "surgical_history"
    CONGENITAL_HISTORY = "congenital_history"
    DISABILITIES = "disabilities"
    HABITS = "habits"
    ENVIRONMENTAL_RISKS = "environmental_risks"


# None means the section accepts free-form rows
MATRIX_ROWS: dict[MatrixSection, tuple[str, ...] | None] = {
    MatrixSection.MEDICAL_HISTORY: INFECTIOUS_DISEASES + CHRONIC_DISEASES,
    MatrixSection.OB_GYN_HISTORY: OB_GYN_ITEMS,
    MatrixSection.VACCINATION_HISTORY: VACCINATION_ITEMS,
    MatrixSection.SURGICAL_HISTORY: None,
    MatrixSection.CONGENITAL_HISTORY: None,
    MatrixSection.DISABILITIES: DISABILITY_ITEMS,
    MatrixSection.HABITS: HABIT_ITEMS,
    MatrixSection.ENVIRONMENTAL_RISKS: None,
}


def allows_row(section: MatrixSection, item: str) -> bool:
    rows = MATRIX_ROWS[section]
    return rows is None or item in rows
