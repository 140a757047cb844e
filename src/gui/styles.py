"""
Estilos visuales de AtomLab.

Define la paleta del laboratorio (tonos pizarra con acento índigo), los
colores del lienzo y las hojas de estilo Qt de la ventana, las pestañas,
la paleta de elementos y el panel de reacciones.
"""

# ============================================================================
# Paleta
# ============================================================================

# Colores principales
SLATE_900 = "#0F172A"
SLATE_700 = "#334155"
SLATE_500 = "#64748B"
SLATE_300 = "#CBD5E1"
SLATE_200 = "#E2E8F0"
SLATE_100 = "#F1F5F9"
SLATE_50 = "#F8FAFC"
WHITE = "#FFFFFF"

ACCENT = "#4F46E5"              # Indigo para acciones principales
ACCENT_HOVER = "#6366F1"
ACCENT_PRESSED = "#4338CA"
ACCENT_SOFT = "#E0E7FF"

DANGER = "#DC2626"              # Modo borrar y errores
DANGER_SOFT = "#FEE2E2"
SUCCESS = "#059669"

# Lienzo
CANVAS_BG = SLATE_50
CANVAS_BOND = "#475569"
CANVAS_SELECTED = "#FACC15"
CANVAS_OVERVALENT = DANGER
CANVAS_EMPTY_TEXT = "#94A3B8"

# ============================================================================
# Hoja de estilos principal
# ============================================================================

MAIN_STYLESHEET = f"""
QMainWindow {{
    background-color: {SLATE_100};
}}

QMenuBar {{
    background-color: {SLATE_900};
    color: {WHITE};
    padding: 4px 8px;
}}

QMenuBar::item:selected {{
    background-color: {SLATE_700};
    border-radius: 4px;
}}

QMenu {{
    background-color: {WHITE};
    border: 1px solid {SLATE_200};
    padding: 4px;
}}

QMenu::item:selected {{
    background-color: {ACCENT_SOFT};
    color: {SLATE_900};
}}

QStatusBar {{
    background-color: {WHITE};
    color: {SLATE_500};
    border-top: 1px solid {SLATE_200};
}}

/* Pestañas constructor / laboratorio */
QTabWidget::pane {{
    border: 1px solid {SLATE_200};
    background-color: {WHITE};
    border-radius: 8px;
}}

QTabBar::tab {{
    background-color: {SLATE_100};
    color: {SLATE_500};
    padding: 8px 18px;
    border-top-left-radius: 6px;
    border-top-right-radius: 6px;
    font-weight: 600;
}}

QTabBar::tab:selected {{
    background-color: {WHITE};
    color: {ACCENT};
}}

QPushButton {{
    background-color: {ACCENT};
    color: {WHITE};
    border: none;
    border-radius: 6px;
    padding: 7px 16px;
    font-weight: 600;
}}

QPushButton:hover {{
    background-color: {ACCENT_HOVER};
}}

QPushButton:pressed {{
    background-color: {ACCENT_PRESSED};
}}

QPushButton:disabled {{
    background-color: {SLATE_300};
    color: {SLATE_500};
}}

QPushButton[flat="true"] {{
    background-color: transparent;
    color: {SLATE_700};
    border: 1px solid {SLATE_300};
}}

QPushButton[flat="true"]:hover {{
    background-color: {SLATE_100};
}}

QPushButton[flat="true"]:checked {{
    background-color: {ACCENT_SOFT};
    color: {ACCENT};
    border: 1px solid {ACCENT};
}}

QPushButton#eraseButton:checked {{
    background-color: {DANGER_SOFT};
    color: {DANGER};
    border: 1px solid {DANGER};
}}

QLineEdit {{
    background-color: {WHITE};
    border: 1px solid {SLATE_300};
    border-radius: 6px;
    padding: 6px 10px;
    color: {SLATE_900};
}}

QLineEdit:focus {{
    border: 2px solid {ACCENT};
    padding: 5px 9px;
}}

QListWidget {{
    background-color: {WHITE};
    border: 1px solid {SLATE_200};
    border-radius: 6px;
}}

QListWidget::item {{
    padding: 6px;
}}

QListWidget::item:selected {{
    background-color: {ACCENT_SOFT};
    color: {SLATE_900};
}}

QLabel#errorLabel {{
    background-color: {DANGER_SOFT};
    color: {DANGER};
    border-radius: 6px;
    padding: 8px;
}}

QLabel#equationLabel {{
    color: {SLATE_900};
    font-size: 16px;
    font-weight: 700;
}}

QLabel#explanationLabel {{
    color: {SLATE_500};
}}
"""

# ============================================================================
# Paleta de elementos
# ============================================================================

ELEMENT_BUTTON_TEMPLATE = """
QPushButton {{
    background-color: {bg};
    color: {text};
    border: 2px solid {border};
    border-radius: 18px;
    min-width: 36px;
    max-width: 36px;
    min-height: 36px;
    max-height: 36px;
    padding: 0px;
    font-weight: 700;
}}

QPushButton:hover {{
    border: 2px solid {hover};
}}
"""


def element_button_stylesheet(bg: str, border: str, text: str) -> str:
    """Hoja de estilo de un botón circular de la paleta con los colores del elemento."""
    return ELEMENT_BUTTON_TEMPLATE.format(bg=bg, border=border, text=text, hover=ACCENT)
