"""
PDF layout engine

Lays documents out as draw commands on A4 pages without touching a PDF
backend. Coordinates are top-down points (y grows downwards from the top
edge); the renderer flips them.

Each section is a function ``(cursor, ...) -> (cursor, placements)``; a
document is a fold of its sections over an immutable Cursor. Text heights
come from an injected measurer so decisions can be tested without fonts.
"""
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from quotedesk.services.payment_plan import StructuredPlan, parse_payment_plan
from quotedesk.services.pdf.documents import (
    BillDocument, ItemLine, QuotationDocument, ReceiptDocument
)

# (text, font, size, width) -> height in points
TextMeasurer = Callable[[str, str, float, float], float]

# ===== Geometry =====
PAGE_WIDTH = 595.28
PAGE_HEIGHT = 841.89
TOP_MARGIN = 50
TABLE_X = 50
TABLE_WIDTH = 500
PAGE_BOTTOM = 750
FOOTER_Y = 780

SECTION_OVERHEAD = 60
MIN_ROW_HEIGHT = 20
ROW_PADDING = 8
SINGLE_PAGE_LIMIT = 680
LOW_START_CUTOFF = 600
SUMMARY_BREAK_Y = 650
BILL_ROW_BREAK_Y = 650

AREA_RATE_COLUMNS = (30, 380, 50, 40)
AREA_RATE_HEADERS = ("#", "Description", "Unit", "Qty")
ITEM_RATE_COLUMNS = (30, 270, 50, 40, 50, 60)
ITEM_RATE_HEADERS = ("#", "Description", "Unit", "Qty", "MM", "Rate")
BILL_COLUMNS = (30, 180, 80, 50, 70, 90)
BILL_HEADERS = ("#", "Description", "Room", "Qty", "Rate", "Amount")

PLAN_COLUMN_X = (50, 350, 430)
PLAN_COLUMN_WIDTHS = (300, 80, 120)
PLAN_ROW_HEIGHT = 25

# ===== Style =====
FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
BODY_SIZE = 9
PRIMARY = "#1e3a5f"
ACCENT = "#c0392b"
MUTED = "#666666"
SHADE = "#f2f2f2"
WHITE = "#ffffff"
BLACK = "#000000"
BORDER = "#dddddd"
STATUS_COLORS = {"paid": "#333333", "partial": "#666666", "pending": "#999999"}

DEFAULT_ROOM = "General"


# ===== Draw commands =====

@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[str] = None
    stroke: Optional[str] = None
    radius: float = 0
    line_width: float = 1


@dataclass(frozen=True)
class Text:
    x: float
    y: float
    text: str
    font: str = FONT
    size: float = BODY_SIZE
    color: str = BLACK
    width: Optional[float] = None
    align: str = "left"


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str = BLACK
    line_width: float = 1


@dataclass(frozen=True)
class Placed:
    page: int
    command: object
    tag: str = ""


@dataclass(frozen=True)
class Cursor:
    page: int = 0
    y: float = TOP_MARGIN

    def new_page(self) -> "Cursor":
        return Cursor(self.page + 1, TOP_MARGIN)

    def down(self, dy: float) -> "Cursor":
        return replace(self, y=self.y + dy)

    def at(self, y: float) -> "Cursor":
        return replace(self, y=y)


@dataclass(frozen=True)
class Layout:
    placements: Tuple[Placed, ...]
    page_count: int

    def on_page(self, page: int) -> List[Placed]:
        return [p for p in self.placements if p.page == page]

    def tagged(self, tag: str) -> List[Placed]:
        return [p for p in self.placements if p.tag == tag]


Section = Tuple[Cursor, List[Placed]]


def place(cursor: Cursor, tag: str, *commands) -> List[Placed]:
    return [Placed(cursor.page, command, tag) for command in commands]


def finish(cursor: Cursor, placements: Sequence[Placed]) -> Layout:
    pages = max([cursor.page] + [p.page for p in placements]) + 1
    return Layout(tuple(placements), pages)


# ===== Formatting =====

def _finite_decimal(value) -> Optional[Decimal]:
    try:
        number = Decimal(str(value or 0))
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def format_amount(amount) -> str:
    """
    Indian digit grouping with two decimals: 1,23,456.78

    Stored plans may hold text where a number belongs; it is printed as is.
    """
    value = _finite_decimal(amount)
    if value is None:
        return str(amount)
    value = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, fraction = f"{abs(value):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}{whole}.{fraction}"


def format_currency(amount) -> str:
    if _finite_decimal(amount) is None:
        return str(amount)
    # Helvetica has no rupee glyph
    return f"Rs. {format_amount(amount)}"


def format_date(value) -> str:
    if not value:
        return ""
    return value.strftime("%d %b %Y")


def format_number(value) -> str:
    number = _finite_decimal(value)
    if number is None:
        return str(value)
    return f"{number.normalize():f}"


# ===== Grouping and measurement =====

def group_by_room(items: Sequence[ItemLine]) -> List[Tuple[str, List[ItemLine]]]:
    """Room groups in order of first appearance; unlabeled items go to General"""
    groups: Dict[str, List[ItemLine]] = {}
    for item in items:
        groups.setdefault(item.room_label or DEFAULT_ROOM, []).append(item)
    return list(groups.items())


def row_height(item: ItemLine, desc_width: float, measure: TextMeasurer) -> float:
    return max(MIN_ROW_HEIGHT, measure(item.item_name or "", FONT, BODY_SIZE, desc_width) + ROW_PADDING)


def section_height(items: Sequence[ItemLine], desc_width: float, measure: TextMeasurer) -> float:
    """Title, header and footer bands plus every row"""
    return SECTION_OVERHEAD + sum(row_height(item, desc_width, measure) for item in items)


def should_break_before_section(y: float, height: float) -> bool:
    """
    Move a room group to a fresh page when it would fit on one page but not
    in what is left, or when it cannot fit anywhere and the cursor is
    already low on the page.
    """
    fits_on_page = height < SINGLE_PAGE_LIMIT
    has_space = y + height < PAGE_BOTTOM
    return (fits_on_page and not has_space) or (not fits_on_page and y > LOW_START_CUTOFF)


# ===== Quotation sections =====

def quotation_header(cursor: Cursor, doc: QuotationDocument) -> Section:
    """Company band, title badge, meta boxes and the client card"""
    company, client = doc.company, doc.client
    out = place(
        cursor, "header",
        Rect(50, 40, 500, 60, fill=PRIMARY),
        Text(50, 52, company.name, FONT_BOLD, 22, WHITE, 500, "center"),
        Text(50, 78, company.address, FONT, 9, WHITE, 500, "center"),
        Text(50, 90, f"Phone: {company.phone} | GST: {company.gst_number}", FONT, 9, WHITE, 500, "center"),
        Rect(220, 115, 160, 30, fill=ACCENT, radius=5),
        Text(220, 123, "QUOTATION", FONT_BOLD, 14, WHITE, 160, "center"),
    )

    meta_y = 160
    out += place(
        cursor, "meta",
        Rect(50, meta_y, 240, 28, fill="#f8f9fa", radius=4),
        Rect(310, meta_y, 240, 28, fill="#f8f9fa", radius=4),
        Text(60, meta_y + 5, "Quotation No:", FONT, 9, MUTED),
        Text(320, meta_y + 5, "Date:", FONT, 9, MUTED),
        Text(60, meta_y + 15, doc.number, FONT_BOLD, 11, PRIMARY),
        Text(320, meta_y + 15, format_date(doc.date), FONT_BOLD, 11, PRIMARY),
    )

    box_y = meta_y + 38
    text_y = box_y + 8
    out += place(
        cursor, "client",
        Rect(50, box_y, 500, 75, stroke=BORDER, radius=6),
        Text(60, text_y, "BILL TO", FONT_BOLD, 10, ACCENT),
        Text(60, text_y + 14, client.name, FONT_BOLD, 12, PRIMARY),
        Text(60, text_y + 30, client.address, FONT, 9, "#555555"),
        Text(60, text_y + 48, f"Phone: {client.phone or 'N/A'}", FONT, 9, "#555555"),
        Text(300, text_y + 14, "Project Location:", FONT, 9, MUTED),
        Text(300, text_y + 26, client.project_location or "N/A", FONT_BOLD, 9, "#333333"),
        Text(300, text_y + 42, f"Area: {format_number(doc.total_sqft) if doc.total_sqft else 'N/A'} sqft", FONT, 9, MUTED),
        Text(300, text_y + 54, f"Rate: {format_currency(doc.rate_per_sqft)}/sqft", FONT, 9, MUTED),
    )
    return cursor.at(text_y + 85), out


def _stat_box(cursor: Cursor, x: float, y: float, big: str, small: str) -> List[Placed]:
    return place(
        cursor, "marketing",
        Rect(x, y, 150, 60, fill="#333333", radius=5),
        Text(x, y + 10, big, FONT_BOLD, 24, WHITE, 150, "center"),
        Text(x, y + 40, small, FONT, 10, WHITE, 150, "center"),
    )


def marketing_page(cursor: Cursor, doc: QuotationDocument) -> Section:
    """Fixed credentials page; always occupies a page of its own"""
    cursor = cursor.new_page()
    company_name = doc.company.name or "our studio"
    out = place(
        cursor, "marketing",
        Text(50, 50, "Why Choose Us ?", FONT_BOLD, 24),
        Line(50, 80, 250, 80, line_width=2),
    )

    paragraphs = [
        (f"You need professional help, and {company_name} can make your dream home a reality!", 20),
        ("We are an architectural and interior design firm with years of hands-on experience.", 20),
        ("With our professional team of architecture and design experts,", 15),
        ("we are excellent at bringing your ideas of a beautiful home to life.", 25),
        ("We are versatile and up to date with the latest trends in interior design.", 15),
        ("We plan every project around the tastes and preferences of our clients and", 15),
        ("complement them with our expertise.", 25),
        ("We have experience with Traditional, Modern, Contemporary, Indian and International forms", 15),
        ("of interior design.", 50),
    ]
    y = 100
    for text, advance in paragraphs:
        out += place(cursor, "marketing", Text(50, y, text, FONT, 10))
        y += advance

    blocks = [
        ("Our Vision", "To be the first choice for anyone seeking an interior design firm that can provide "
                       "a complete package of high-design and construction services.", 80),
        ("Our Mission", "Our mission is to create beautiful, sustainable and innovative spaces that will "
                        "exceed our client's expectations.", 90),
    ]
    for title, body, advance in blocks:
        out += place(
            cursor, "marketing",
            Rect(50, y, 500, 50, stroke=BLACK),
            Rect(60, y - 10, 110, 20, fill=WHITE),
            Text(65, y - 8, title, FONT_BOLD, 14),
            Text(60, y + 15, body, FONT, 9, BLACK, 480),
        )
        y += advance

    for index, (big, small) in enumerate((("10", "Years in Industry"),
                                          ("150+", "Skilled Workers"),
                                          ("501+", "Projects Completed"))):
        out += _stat_box(cursor, 50 + index * 175, y, big, small)

    box_y = 730
    out += place(
        cursor, "marketing",
        Rect(50, box_y, 500, 70, stroke=BLACK),
        Text(60, box_y + 15, "Contact :", FONT_BOLD, 10),
        Text(120, box_y + 15, doc.company.phone, FONT, 10),
        Text(60, box_y + 50, "Party Name :", FONT_BOLD, 10),
        Text(130, box_y + 50, doc.client.name, FONT, 10),
        Text(350, box_y + 15, "Quotation :", FONT_BOLD, 10),
        Text(420, box_y + 15, f"#{doc.id:03d}", FONT, 10),
        Text(350, box_y + 30, "Date :", FONT_BOLD, 10),
        Text(420, box_y + 30, format_date(doc.date), FONT, 10),
    )
    return cursor, out


def room_group(
    cursor: Cursor,
    room: str,
    items: Sequence[ItemLine],
    area_rate: bool,
    measure: TextMeasurer,
) -> Section:
    """Title band, header band, rows and, for item pricing, the group total"""
    columns = AREA_RATE_COLUMNS if area_rate else ITEM_RATE_COLUMNS
    headers = AREA_RATE_HEADERS if area_rate else ITEM_RATE_HEADERS
    desc_width = columns[1] - 10

    if should_break_before_section(cursor.y, section_height(items, desc_width, measure)):
        cursor = cursor.new_page()

    y = cursor.y
    out = place(
        cursor, "room_title",
        Rect(TABLE_X, y, 4, 18, fill=ACCENT),
        Text(60, y + 3, room.upper(), FONT_BOLD, 11, PRIMARY),
    )
    cursor = cursor.down(26)

    y = cursor.y
    header = [Rect(TABLE_X, y, TABLE_WIDTH, 22, fill=PRIMARY, radius=3)]
    x = TABLE_X
    for index, (title, width) in enumerate(zip(headers, columns)):
        header.append(Text(x + 5, y + 7, title, FONT_BOLD, 9, WHITE, width - 10, "right" if index >= 3 else "left"))
        x += width
    out += place(cursor, "table_header", *header)
    cursor = cursor.down(22)

    group_total = Decimal("0")
    for index, item in enumerate(items):
        height = row_height(item, desc_width, measure)
        if cursor.y + height > PAGE_BOTTOM:
            cursor = cursor.new_page()

        y = cursor.y
        text_y = y + 6
        cells = [
            Rect(TABLE_X, y, TABLE_WIDTH, height, fill=SHADE if index % 2 == 0 else WHITE),
            Text(TABLE_X + 5, text_y, str(index + 1), width=columns[0] - 10),
            Text(TABLE_X + columns[0] + 5, text_y, item.item_name, width=desc_width),
            Text(TABLE_X + sum(columns[:2]) + 5, text_y, item.unit, width=columns[2] - 10),
            Text(TABLE_X + sum(columns[:3]) + 5, text_y, format_number(item.quantity),
                 width=columns[3] - 10, align="right"),
        ]
        if not area_rate:
            cells += [
                Text(TABLE_X + sum(columns[:4]) + 5, text_y, item.material, width=columns[4] - 10, align="center"),
                Text(TABLE_X + sum(columns[:5]) + 5, text_y, format_currency(item.rate),
                     width=columns[5] - 10, align="right"),
            ]
        out += place(cursor, "row", *cells)
        group_total += item.amount
        cursor = cursor.down(height)

    if area_rate:
        return cursor.down(10), out

    y = cursor.y
    out += place(
        cursor, "group_total",
        Rect(TABLE_X, y, TABLE_WIDTH, 20, stroke=BLACK),
        Text(TABLE_X, y + 6, "Component Total", FONT_BOLD, 9, BLACK, 410, "right"),
        Text(460, y + 6, format_currency(group_total), FONT_BOLD, 9, BLACK, 90, "right"),
    )
    return cursor.down(30), out


def quotation_summary(cursor: Cursor, doc: QuotationDocument) -> Section:
    if cursor.y > SUMMARY_BREAK_Y:
        cursor = cursor.new_page()
    cursor = cursor.down(15)
    y = cursor.y
    rows_y = y + 28

    out = place(
        cursor, "summary",
        Rect(330, y, 220, 115, stroke=BORDER, radius=6),
        Rect(330, y, 220, 22, fill=PRIMARY, radius=6),
        Text(330, y + 6, "SUMMARY", FONT_BOLD, 10, WHITE, 220, "center"),
        Text(345, rows_y, "Subtotal:", color="#555555"),
        Text(470, rows_y, format_currency(doc.subtotal), color="#555555", width=70, align="right"),
    )
    if doc.discount_amount > 0:
        label = f"{format_number(doc.discount_value)}%" if doc.discount_type == "percentage" else "Flat"
        out += place(
            cursor, "summary",
            Text(345, rows_y + 13, f"Discount ({label}):", color="#10b981"),
            Text(470, rows_y + 13, f"-{format_currency(doc.discount_amount)}", color="#10b981",
                 width=70, align="right"),
        )
    out += place(
        cursor, "summary",
        Text(345, rows_y + 26, "Taxable Amount:", color="#555555"),
        Text(470, rows_y + 26, format_currency(doc.taxable_amount), color="#555555", width=70, align="right"),
        Text(345, rows_y + 39, f"CGST ({format_number(doc.cgst_percent)}%):", color="#555555"),
        Text(470, rows_y + 39, format_currency(doc.cgst_amount), color="#555555", width=70, align="right"),
        Text(345, rows_y + 52, f"SGST ({format_number(doc.sgst_percent)}%):", color="#555555"),
        Text(470, rows_y + 52, format_currency(doc.sgst_amount), color="#555555", width=70, align="right"),
        Rect(335, y + 88, 210, 22, fill=ACCENT, radius=4),
        Text(345, y + 93, "Grand Total:", FONT_BOLD, 11, WHITE),
        Text(470, y + 93, format_currency(doc.grand_total), FONT_BOLD, 11, WHITE, 70, "right"),
    )
    return cursor.down(130), out


def payment_plan_section(cursor: Cursor, raw_plan: Optional[str], measure: TextMeasurer) -> Section:
    plan = parse_payment_plan(raw_plan)
    if plan is None:
        return cursor.down(50), []

    cursor = cursor.down(15)
    out = place(
        cursor, "payment_plan",
        Rect(TABLE_X, cursor.y, 4, 16, fill=ACCENT),
        Text(60, cursor.y + 2, "Payment Plan & Milestones", FONT_BOLD, 11, PRIMARY),
    )
    cursor = cursor.down(22)

    if not isinstance(plan, StructuredPlan):
        height = measure(plan.text, FONT, 9, TABLE_WIDTH)
        out += place(cursor, "payment_plan", Text(TABLE_X, cursor.y, plan.text, FONT, 9, BLACK, TABLE_WIDTH))
        return cursor.down(height + 30), out

    def table_row(at: Cursor, cells, font_size) -> List[Placed]:
        y = at.y
        commands = [
            Rect(TABLE_X, y, TABLE_WIDTH, PLAN_ROW_HEIGHT, stroke=BLACK),
            Line(PLAN_COLUMN_X[1], y, PLAN_COLUMN_X[1], y + PLAN_ROW_HEIGHT),
            Line(PLAN_COLUMN_X[2], y, PLAN_COLUMN_X[2], y + PLAN_ROW_HEIGHT),
        ]
        for index, (text, align) in enumerate(cells):
            x = PLAN_COLUMN_X[index] + (5 if align == "left" else 0)
            width = PLAN_COLUMN_WIDTHS[index] - (10 if align == "left" else 5 if index == 2 else 0)
            commands.append(Text(x, y + 8, text, FONT, font_size, BLACK, width, align))
        return place(at, "payment_plan", *commands)

    out += table_row(cursor, (("Milestone", "center"), ("Percent", "center"), ("Amount", "center")), 10)
    cursor = cursor.down(PLAN_ROW_HEIGHT)

    for milestone in plan.milestones:
        if cursor.y > PAGE_BOTTOM:
            cursor = cursor.new_page()
        out += table_row(cursor, (
            (milestone.stage, "left"),
            (format_number(milestone.percent), "center"),
            (format_currency(milestone.amount), "center"),
        ), 9)
        cursor = cursor.down(PLAN_ROW_HEIGHT)

    return cursor.down(20), out


def terms_and_bank(cursor: Cursor, terms: Optional[str], bank_details: Optional[str], measure: TextMeasurer) -> Section:
    """No page-break check; long text may clip at the bottom of the page"""
    out: List[Placed] = []
    if terms:
        out += place(cursor, "terms", Text(TABLE_X, cursor.y, "Terms & Conditions Of Company", FONT_BOLD, 11))
        cursor = cursor.down(15)
        out += place(cursor, "terms", Text(TABLE_X, cursor.y, terms, FONT, 9, BLACK, TABLE_WIDTH))
        cursor = cursor.down(measure(terms, FONT, 9, TABLE_WIDTH) + 30)
    if bank_details:
        out += place(
            cursor, "bank_details",
            Text(TABLE_X, cursor.y, "Bank Account Details Of Company", FONT_BOLD, 11),
            Text(TABLE_X, cursor.y + 15, bank_details, FONT, 8, BLACK, TABLE_WIDTH),
        )
    return cursor, out


def footer(cursor: Cursor, text: str) -> List[Placed]:
    return place(cursor, "footer", Text(TABLE_X, FOOTER_Y, text, FONT, 8, BLACK, TABLE_WIDTH, "center"))


# ===== Documents =====

def layout_quotation(doc: QuotationDocument, measure: TextMeasurer) -> Layout:
    """
    Page 1: header and client card. Page 2: credentials page. Room tables
    start at the top of page 3, followed by the summary, payment plan,
    terms and bank details.
    """
    cursor, placements = quotation_header(Cursor(), doc)

    cursor, section = marketing_page(cursor, doc)
    placements += section
    cursor = cursor.new_page()

    area_rate = doc.rate_per_sqft > 0
    for room, items in group_by_room(doc.items):
        cursor, section = room_group(cursor, room, items, area_rate, measure)
        placements += section

    cursor, section = quotation_summary(cursor, doc)
    placements += section
    cursor, section = payment_plan_section(cursor, doc.payment_plan, measure)
    placements += section
    cursor, section = terms_and_bank(cursor, doc.terms_conditions, doc.company.bank_details, measure)
    placements += section
    placements += footer(cursor, "This is a computer generated quotation.")

    return finish(cursor, placements)


def simple_header(cursor: Cursor, company, title: str) -> Section:
    out = place(
        cursor, "header",
        Text(TABLE_X, 50, company.name, FONT_BOLD, 20, BLACK, TABLE_WIDTH, "center"),
        Text(TABLE_X, 75, company.address, FONT, 10, BLACK, TABLE_WIDTH, "center"),
        Text(TABLE_X, 89, f"Phone: {company.phone} | GST: {company.gst_number}", FONT, 10, BLACK, TABLE_WIDTH, "center"),
        Text(TABLE_X, 115, title, FONT_BOLD, 16, BLACK, TABLE_WIDTH, "center"),
    )
    return cursor.at(145), out


def layout_bill(doc: BillDocument, measure: TextMeasurer = None) -> Layout:
    """Tax invoice: one flat item table with a room column, then totals and payment status"""
    cursor, placements = simple_header(Cursor(), doc.company, "TAX INVOICE")

    y = cursor.y
    placements += place(
        cursor, "meta",
        Text(50, y, f"Invoice No: {doc.number}", FONT, 10),
        Text(400, y, f"Date: {format_date(doc.date)}", FONT, 10),
        Text(50, y + 15, f"Quotation Ref: {doc.quotation_number}", FONT, 10),
    )

    box_y = y + 40
    text_y = box_y + 10
    placements += place(
        cursor, "client",
        Rect(50, box_y, 500, 60, stroke=BLACK),
        Text(60, text_y, "Bill To:", FONT, 10),
        Text(60, text_y + 15, doc.client.name, FONT_BOLD, 10),
        Text(60, text_y + 30, doc.client.address, FONT, 10),
        Text(300, text_y + 15, f"Phone: {doc.client.phone or 'N/A'}", FONT, 10),
        Text(300, text_y + 30, f"Project: {doc.client.project_location or 'N/A'}", FONT, 10),
    )

    table_top = text_y + 70
    header = [Rect(TABLE_X, table_top, TABLE_WIDTH, 20, fill="#333333")]
    x = TABLE_X
    for title, width in zip(BILL_HEADERS, BILL_COLUMNS):
        header.append(Text(x + 5, table_top + 6, title, FONT_BOLD, 9, WHITE, width - 10))
        x += width
    placements += place(cursor, "table_header", *header)

    cursor = cursor.at(table_top + 25)
    for index, item in enumerate(doc.items):
        if cursor.y > BILL_ROW_BREAK_Y:
            cursor = cursor.new_page()
        y = cursor.y
        values = (
            str(index + 1),
            item.item_name,
            item.room_label or "-",
            format_number(item.quantity or 1),
            format_currency(item.rate),
            format_currency(item.amount),
        )
        cells = [Rect(TABLE_X, y - 5, TABLE_WIDTH, 20, fill=SHADE if index % 2 == 0 else WHITE)]
        x = TABLE_X
        for value, width in zip(values, BILL_COLUMNS):
            cells.append(Text(x + 5, y, value, width=width - 10))
            x += width
        placements += place(cursor, "row", *cells)
        cursor = cursor.down(20)

    cursor = cursor.down(10)
    y = cursor.y
    status = doc.status or ""
    placements += place(
        cursor, "summary",
        Rect(350, y, 200, 120, stroke=BLACK),
        Text(360, y + 10, "Subtotal:"),
        Text(470, y + 10, format_currency(doc.subtotal), width=70, align="right"),
        Text(360, y + 25, f"CGST ({format_number(doc.cgst_percent)}%):"),
        Text(470, y + 25, format_currency(doc.cgst_amount), width=70, align="right"),
        Text(360, y + 40, f"SGST ({format_number(doc.sgst_percent)}%):"),
        Text(470, y + 40, format_currency(doc.sgst_amount), width=70, align="right"),
        Text(360, y + 60, "Grand Total:", FONT_BOLD),
        Text(470, y + 60, format_currency(doc.grand_total), FONT_BOLD, width=70, align="right"),
        Text(360, y + 80, "Amount Paid:"),
        Text(470, y + 80, format_currency(doc.paid_amount), width=70, align="right"),
        Text(360, y + 100, "Balance Due:", FONT_BOLD),
        Text(470, y + 100, format_currency(doc.balance_amount), FONT_BOLD, width=70, align="right"),
    )
    placements += place(
        cursor, "status",
        Rect(50, y + 20, 80, 25, fill=STATUS_COLORS.get(status, "#cccccc")),
        Text(55, y + 28, status.upper(), FONT_BOLD, 10, WHITE),
    )
    placements += footer(cursor, "This is a computer generated invoice.")
    return finish(cursor, placements)


def layout_receipt(doc: ReceiptDocument, measure: TextMeasurer = None) -> Layout:
    """Single page: details box, amount box, running totals and signature"""
    cursor, placements = simple_header(Cursor(), doc.company, "PAYMENT RECEIPT")

    box_top = cursor.y
    y = box_top + 15
    details = [
        Rect(50, box_top, 500, 150, stroke=BLACK),
        Text(60, y, f"Receipt No: {doc.number}", FONT_BOLD, 10),
        Text(400, y, f"Date: {format_date(doc.date)}", FONT_BOLD, 10),
        Text(60, y + 30, "Received From:", FONT, 10),
        Text(150, y + 30, doc.client.name, FONT_BOLD, 10),
        Text(60, y + 50, "Address:", FONT, 10),
        Text(150, y + 50, doc.client.address or "N/A", FONT, 10),
        Text(60, y + 70, "Phone:", FONT, 10),
        Text(150, y + 70, doc.client.phone or "N/A", FONT, 10),
        Text(60, y + 90, "Quotation Ref:", FONT, 10),
        Text(150, y + 90, doc.quotation_number, FONT, 10),
        Text(60, y + 110, "Payment Mode:", FONT, 10),
        Text(150, y + 110, doc.payment_mode, FONT, 10),
    ]
    if doc.transaction_reference:
        details += [
            Text(300, y + 110, "Transaction Ref:", FONT, 10),
            Text(400, y + 110, doc.transaction_reference, FONT, 10),
        ]
    placements += place(cursor, "details", *details)

    amount_y = y + 180
    placements += place(
        cursor, "amount",
        Rect(150, amount_y, 300, 60, fill="#333333"),
        Text(200, amount_y + 15, "Amount Received", FONT_BOLD, 12, WHITE, 200, "center"),
        Text(200, amount_y + 35, format_currency(doc.amount), FONT_BOLD, 20, WHITE, 200, "center"),
    )

    cursor = cursor.at(amount_y + 80)
    lines = [
        f"Total Quotation Amount: {format_currency(doc.quotation_total)}",
        f"Total Amount Paid: {format_currency(doc.total_paid)}",
        f"Balance Due: {format_currency(doc.quotation_total - doc.total_paid)}",
    ]
    if doc.notes:
        lines += ["", f"Notes: {doc.notes}"]
    for text in lines:
        if text:
            placements += place(cursor, "totals", Text(60, cursor.y, text, FONT, 10, BLACK, 490))
        cursor = cursor.down(15)

    placements += place(
        cursor, "signature",
        Text(400, 650, "____________________", FONT, 10),
        Text(400, 665, "Authorized Signature", FONT, 10),
    )
    placements += footer(cursor, "This is a computer generated receipt.")
    return finish(cursor, placements)
