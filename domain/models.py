# storefront/domain/models.py

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Literal, Optional, Tuple, Union

AggregationType = Literal["weight", "cardboard"]
OrderStatus = Literal["processing", "completed"]

AGGREGATION_WEIGHT: AggregationType = "weight"
AGGREGATION_CARDBOARD: AggregationType = "cardboard"

STATUS_PROCESSING: OrderStatus = "processing"
STATUS_COMPLETED: OrderStatus = "completed"

UNIT_KG = "kg"
UNIT_PCS = "pcs"


@dataclass
class Product:
    """
    One catalog entry. A "cardboard" is the sellable pack.
    """
    id: str
    name: str
    category: str = ""
    unit: str = UNIT_KG
    net_weight: float = 0.0  # net weight per pack
    unit_per_cardboard: float = 0.0  # pieces per pack for count-based products
    price_per_unit: float = 0.0
    price_per_cardboard: float = 0.0
    currency: str = "UAH"
    active: bool = True
    image: str = ""
    position: int = 0
    aggregation_type: AggregationType = AGGREGATION_WEIGHT
    external_url: Optional[str] = None

    @property
    def is_cardboard(self) -> bool:
        return self.aggregation_type == AGGREGATION_CARDBOARD


@dataclass
class OrderItem:
    """
    Snapshot of a cart line taken at checkout. Numeric fields are 0 when the
    stored record did not carry them.
    """
    product_id: str
    name: str
    quantity: float  # number of packs
    price: float = 0.0  # per pack
    price_per_unit: float = 0.0
    net_weight: float = 0.0
    cardboard_weight: float = 0.0  # legacy name of net_weight
    unit_per_cardboard: float = 0.0
    unit: str = UNIT_KG
    currency: str = "UAH"
    aggregation_type: Optional[AggregationType] = None
    total_price: Optional[float] = None


@dataclass
class Order:
    id: str
    customer_name: str
    customer_email: str
    items: List[OrderItem]
    total_price: float
    currency: str
    status: OrderStatus = STATUS_PROCESSING
    order_date: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Pivot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Mass:
    """Accumulated mass of a weight-type product."""
    value: float

    @property
    def mass(self) -> float:
        return self.value

    def add(self, amount: float) -> "Mass":
        return Mass(self.value + amount)


@dataclass(frozen=True)
class PackCount:
    """
    Accumulated number of packs of a cardboard-type product. The true mass is
    only known through pack_weight.
    """
    value: float
    pack_weight: float

    @property
    def mass(self) -> float:
        return self.value * self.pack_weight

    def add(self, amount: float) -> "PackCount":
        return PackCount(self.value + amount, self.pack_weight)


PivotCell = Union[Mass, PackCount]


@dataclass
class PivotEntry:
    """One (customer, product) cell of the dashboard matrix."""
    packs: float
    cell: PivotCell
    unit: str

    @property
    def weight(self) -> float:
        return self.cell.mass


@dataclass
class CustomerRow:
    customer_name: str
    email: str
    products: Dict[str, PivotEntry] = field(default_factory=dict)

    @property
    def total_weight(self) -> float:
        return sum(entry.weight for entry in self.products.values())


@dataclass
class OrderRow:
    """Per-order values destined for one spreadsheet row."""
    order: Order
    cells: Dict[str, PivotCell] = field(default_factory=dict)


@dataclass
class ProductTotal:
    name: str
    unit: str
    packs: float = 0.0
    weight: float = 0.0


@dataclass
class Pivot:
    sorted_keys: List[str]
    customers: List[CustomerRow]
    order_rows: List[OrderRow]
    totals: Dict[str, ProductTotal]
    column_types: Dict[str, AggregationType]
    column_pack_weights: Dict[str, float]

    @property
    def total_weight(self) -> float:
        return sum(c.total_weight for c in self.customers)


@dataclass
class RevenueLine:
    name: str
    total_packs: float
    total_revenue: float
    currency: str


@dataclass
class RevenueSummary:
    lines: List[RevenueLine]
    shops: int
    products: int

    @property
    def total_revenue(self) -> float:
        return round(sum(line.total_revenue for line in self.lines), 2)

    @property
    def total_packs(self) -> float:
        return sum(line.total_packs for line in self.lines)

    @property
    def currency(self) -> str:
        """Currency of the summed revenue; the most common one if lines disagree."""
        if not self.lines:
            return "EUR"
        currencies = [line.currency for line in self.lines]
        return max(currencies, key=currencies.count)


# ---------------------------------------------------------------------------
# Report grid
# ---------------------------------------------------------------------------

Color = Tuple[float, float, float]
CellValue = Union[str, int, float]


@dataclass(frozen=True)
class CellFormat:
    """
    A formatting instruction for a 0-based, end-exclusive range of cells.
    end_row=None means "to the end of the sheet".
    """
    start_row: int
    end_row: Optional[int]
    start_col: int
    end_col: int
    number_pattern: Optional[str] = None
    bold: bool = False
    font_size: Optional[int] = None
    background: Optional[Color] = None


@dataclass
class ReportGrid:
    title: str
    rows: List[List[CellValue]]
    formats: List[CellFormat]

    @property
    def header(self) -> List[CellValue]:
        return self.rows[0]


@dataclass
class ExportResult:
    ok: bool
    message: str
    sheet_name: Optional[str] = None
    sheet_url: Optional[str] = None


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------

@dataclass
class CartLine:
    product: Product
    quantity: int
