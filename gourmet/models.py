from dataclasses import asdict, dataclass
from enum import Enum

DEFAULT_RANGE_CODE = 3

RANGE_BANDS: dict[int, int] = {
    1: 300,
    2: 500,
    3: 1000,
    4: 2000,
    5: 3000,
}

DISPLAY_FIELDS = (
    "id",
    "name",
    "image_url",
    "access",
    "address",
    "open_hours",
    "genre_name",
    "budget_label",
    "detail_url",
)


class ProviderKind(str, Enum):
    HOTPEPPER = "hotpepper"
    GURUNAVI = "gurunavi"


class Screen(str, Enum):
    SEARCH = "search"
    RESULTS = "results"
    DETAIL = "detail"


class SortKey(str, Enum):
    DISTANCE = "distance"
    PRICE = "price"


def range_label(range_code: int) -> str:
    meters = RANGE_BANDS.get(range_code)
    if meters is None:
        return ""
    label = f"{meters}m 以内"
    if range_code == DEFAULT_RANGE_CODE:
        label += " (標準)"
    return label


@dataclass(slots=True)
class Shop:
    id: str
    name: str
    image_url: str
    access: str
    address: str
    open_hours: str
    catchphrase: str
    genre_name: str
    budget_label: str
    distance_proxy: float | None
    price_proxy: float | None
    detail_url: str

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(slots=True)
class Query:
    lat: float | None = None
    lng: float | None = None
    range_code: int = DEFAULT_RANGE_CODE

    @property
    def is_valid(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def range_meters(self) -> int | None:
        return RANGE_BANDS.get(self.range_code)
