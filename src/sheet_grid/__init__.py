"""sheet-grid — Filter a published spreadsheet export and cut CSV subsets."""

__version__ = "0.1.0"

SHEET_ORDER_HEADER = "__sheet_order__"

DEFAULT_FACET_COLUMNS: list[str] = ["B", "E"]
DEFAULT_EXPORT_COLUMNS: list[str] = ["A", "C-Z"]
DEFAULT_DATE_COLUMN = "AC"
DEFAULT_FILENAME_PREFIX = "Inscritos"
DEFAULT_PAGE_SIZE = 25
SEARCH_DEBOUNCE_SECONDS = 0.12

# Logical detail field -> header aliases, highest priority first.
DEFAULT_FIELD_ALIASES: dict[str, list[str]] = {
    "name": ["Nombre completo", "Nombre del estudiante", "Nombre", "Estudiante"],
    "phone": ["Telefono", "Celular", "Telefono estudiante", "WhatsApp"],
    "guardian": ["Acudiente", "Nombre acudiente", "Responsable"],
    "guardian_phone": ["Telefono acudiente", "Celular acudiente", "Tel acudiente"],
}
