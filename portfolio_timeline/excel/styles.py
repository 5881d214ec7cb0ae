"""
Report palette (slate / violet, emerald gains, rose losses) and the openpyxl style objects built from it.
"""
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

# ---------------------------------------------------------------------------
# Color constants
# ---------------------------------------------------------------------------
SLATE_DARK = "1E293B"
SLATE = "334155"
VIOLET = "6D28D9"
EMERALD = "047857"
ROSE = "BE123C"
WHITE = "FFFFFF"
BLACK = "000000"
ALTERNATE_ROW = "F8FAFC"
TOTAL_ROW_BG = "E2E8F0"
GRAY_666 = "666666"

# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------
TITLE_FONT = Font(name="Calibri", size=24, bold=True, color=SLATE_DARK)
SUBTITLE_FONT = Font(name="Calibri", size=12, italic=True, color=GRAY_666)
HEADER_FONT = Font(name="Calibri", size=11, bold=True, color=WHITE)
DATA_FONT = Font(name="Calibri", size=10, color=BLACK)
TOTAL_FONT = Font(name="Calibri", size=10, bold=True, color=BLACK)
SECTION_FONT = Font(name="Calibri", size=14, bold=True, color=VIOLET)
KPI_VALUE_FONT = Font(name="Calibri", size=24, bold=True, color=SLATE_DARK)
KPI_LABEL_FONT = Font(name="Calibri", size=10, color=GRAY_666)
POSITIVE_KPI_FONT = Font(name="Calibri", size=24, bold=True, color=EMERALD)
NEGATIVE_KPI_FONT = Font(name="Calibri", size=24, bold=True, color=ROSE)
WARNING_FONT = Font(name="Calibri", size=10, italic=True, color=ROSE)
GAIN_FONT = Font(name="Calibri", size=10, color=EMERALD)
LOSS_FONT = Font(name="Calibri", size=10, color=ROSE)

# ---------------------------------------------------------------------------
# Fills
# ---------------------------------------------------------------------------
HEADER_FILL = PatternFill(start_color=SLATE, end_color=SLATE, fill_type="solid")
ALTERNATE_FILL = PatternFill(start_color=ALTERNATE_ROW, end_color=ALTERNATE_ROW, fill_type="solid")
TOTAL_FILL = PatternFill(start_color=TOTAL_ROW_BG, end_color=TOTAL_ROW_BG, fill_type="solid")

# ---------------------------------------------------------------------------
# Borders
# ---------------------------------------------------------------------------
def _box(color: str, top: str = "thin", bottom: str = "thin") -> Border:
    return Border(
        left=Side(style="thin", color=color),
        right=Side(style="thin", color=color),
        top=Side(style=top, color=color),
        bottom=Side(style=bottom, color=color),
    )


THIN_BORDER = _box("CBD5E1")
HEADER_BORDER = _box(SLATE_DARK, bottom="medium")
TOTAL_BORDER = _box("94A3B8", top="medium", bottom="medium")

# ---------------------------------------------------------------------------
# Alignments
# ---------------------------------------------------------------------------
CENTER = Alignment(horizontal="center", vertical="center")
LEFT = Alignment(horizontal="left", vertical="center")
RIGHT = Alignment(horizontal="right", vertical="center")
