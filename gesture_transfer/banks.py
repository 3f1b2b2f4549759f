"""
Bank Directory Module

Static directory of Indonesian banks used to pick a preferred destination
bank, plus the bank-type reference table. Records are immutable and never
change at runtime.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple


class BankType(Enum):
    """Bank ownership category"""
    GOVERNMENT = "government"
    PRIVATE = "private"
    REGIONAL = "regional"
    FOREIGN = "foreign"
    SYARIAH = "syariah"


@dataclass(frozen=True)
class Bank:
    """Immutable bank record"""
    id: str
    name: str
    full_name: str
    code: str  # Interbank clearing code
    type: BankType
    logo: str
    color: str
    description: str
    services: Tuple[str, ...]
    popular: bool

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "full_name": self.full_name,
            "code": self.code,
            "type": self.type.value,
            "logo": self.logo,
            "color": self.color,
            "description": self.description,
            "services": list(self.services),
            "popular": self.popular,
        }


@dataclass(frozen=True)
class BankTypeInfo:
    label: str
    description: str
    color: str


DEFAULT_TYPE_COLOR = "#757575"


INDONESIAN_BANKS: Tuple[Bank, ...] = (
    # Government banks
    Bank("bri", "BRI", "Bank Rakyat Indonesia", "002", BankType.GOVERNMENT, "🏛️", "#003d82",
         "Indonesia's largest bank serving millions of customers nationwide",
         ("ATM", "Internet Banking", "Mobile Banking", "International Transfer"), True),
    Bank("bni", "BNI", "Bank Negara Indonesia", "009", BankType.GOVERNMENT, "🏦", "#ff8500",
         "State-owned bank with extensive international presence",
         ("ATM", "Internet Banking", "Mobile Banking", "Trade Finance"), True),
    Bank("btn", "BTN", "Bank Tabungan Negara", "200", BankType.GOVERNMENT, "🏠", "#0066cc",
         "Government bank specializing in housing and infrastructure financing",
         ("ATM", "Housing Loans", "Internet Banking", "Mobile Banking"), False),
    Bank("mandiri", "Mandiri", "Bank Mandiri", "008", BankType.GOVERNMENT, "🌟", "#003d82",
         "Indonesia's largest bank by assets with comprehensive financial services",
         ("ATM", "Internet Banking", "Mobile Banking", "Investment", "Insurance"), True),

    # Private banks
    Bank("bca", "BCA", "Bank Central Asia", "014", BankType.PRIVATE, "💙", "#0066cc",
         "Leading private bank known for excellent digital banking services",
         ("ATM", "KlikBCA", "Mobile Banking", "Investment", "Credit Cards"), True),
    Bank("bni_syariah", "BNI Syariah", "Bank BNI Syariah", "427", BankType.SYARIAH, "☪️", "#00a651",
         "Sharia-compliant banking services following Islamic principles",
         ("ATM", "Internet Banking", "Mobile Banking", "Sharia Investment"), False),
    Bank("cimb_niaga", "CIMB Niaga", "CIMB Niaga", "022", BankType.FOREIGN, "🔴", "#d50000",
         "Malaysian-owned bank with strong digital presence in Indonesia",
         ("ATM", "Internet Banking", "Mobile Banking", "International Transfer"), True),
    Bank("danamon", "Danamon", "Bank Danamon", "011", BankType.PRIVATE, "🟢", "#00a651",
         "Leading private bank with focus on retail and SME banking",
         ("ATM", "D-Bank Pro", "Mobile Banking", "SME Banking"), False),
    Bank("permata", "Permata", "Bank Permata", "013", BankType.PRIVATE, "💎", "#8e24aa",
         "Premium banking services with innovative digital solutions",
         ("ATM", "PermataMobile X", "Internet Banking", "Investment"), False),
    Bank("maybank", "Maybank", "Maybank Indonesia", "016", BankType.FOREIGN, "🟡", "#ffab00",
         "Malaysian bank offering comprehensive financial services",
         ("ATM", "Maybank2u", "Mobile Banking", "International Banking"), False),

    # Regional banks
    Bank("bjb", "BJB", "Bank Jawa Barat dan Banten", "110", BankType.REGIONAL, "🏛️", "#1976d2",
         "Regional bank serving West Java and Banten provinces",
         ("ATM", "Internet Banking", "Mobile Banking", "Regional Services"), False),
    Bank("bank_jatim", "Bank Jatim", "Bank Jawa Timur", "114", BankType.REGIONAL, "🌊", "#0288d1",
         "Regional bank focused on East Java development",
         ("ATM", "Internet Banking", "Mobile Banking", "UMKM Banking"), False),

    # Digital banks
    Bank("jenius", "Jenius", "Bank BTPN Jenius", "213", BankType.PRIVATE, "📱", "#00bcd4",
         "Digital bank with innovative mobile-first banking experience",
         ("Mobile Banking", "Digital Wallet", "Investment", "Savings Goals"), True),
    Bank("jago", "Jago", "Bank Jago", "094", BankType.PRIVATE, "🚀", "#2196f3",
         "Digital bank designed for the modern lifestyle",
         ("Mobile Banking", "Digital Pockets", "Investment", "Bill Payment"), True),
    Bank("seabank", "SeaBank", "Bank SeaBank Indonesia", "535", BankType.PRIVATE, "🌊", "#00acc1",
         "Digital bank by Sea Group with focus on financial inclusion",
         ("Mobile Banking", "Digital Services", "E-commerce Integration"), True),
)


BANK_TYPES: Dict[BankType, BankTypeInfo] = {
    BankType.GOVERNMENT: BankTypeInfo("Government Bank", "State-owned banks with government backing", "#1976d2"),
    BankType.PRIVATE: BankTypeInfo("Private Bank", "Privately-owned commercial banks", "#388e3c"),
    BankType.REGIONAL: BankTypeInfo("Regional Bank", "Regional development banks", "#f57c00"),
    BankType.FOREIGN: BankTypeInfo("Foreign Bank", "Foreign-owned banks operating in Indonesia", "#7b1fa2"),
    BankType.SYARIAH: BankTypeInfo("Sharia Bank", "Islamic banking following Sharia principles", "#00796b"),
}


def _coerce_type(bank_type) -> Optional[BankType]:
    if isinstance(bank_type, BankType):
        return bank_type
    try:
        return BankType(bank_type)
    except ValueError:
        return None


def get_bank_by_id(bank_id: str) -> Optional[Bank]:
    """Find a bank by its identifier"""
    for bank in INDONESIAN_BANKS:
        if bank.id == bank_id:
            return bank
    return None


def get_banks_by_type(bank_type) -> List[Bank]:
    """All banks of a category; unknown categories yield an empty list"""
    wanted = _coerce_type(bank_type)
    return [bank for bank in INDONESIAN_BANKS if bank.type == wanted]


def get_popular_banks() -> List[Bank]:
    return [bank for bank in INDONESIAN_BANKS if bank.popular]


def search_banks(query: str) -> List[Bank]:
    """Match the short name or full name case-insensitively, or the code as a substring"""
    lower_query = query.lower()
    return [
        bank for bank in INDONESIAN_BANKS
        if lower_query in bank.name.lower()
        or lower_query in bank.full_name.lower()
        or query in bank.code
    ]


def format_bank_display(bank: Bank) -> str:
    return f"{bank.logo} {bank.name} - {bank.full_name}"


def get_bank_type_color(bank_type) -> str:
    info = BANK_TYPES.get(_coerce_type(bank_type))
    return info.color if info else DEFAULT_TYPE_COLOR
