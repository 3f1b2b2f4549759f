"""
Internationalization Module

Language list, translation tables and locale-aware formatting. Tables are
written nested for readability and flattened to dotted keys once at import,
so a lookup is a single dict access per language.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional, Union
import logging
import re

from .storage import LocalStorage, LANGUAGE_KEY

logger = logging.getLogger("gesture_transfer.i18n")


@dataclass(frozen=True)
class Language:
    code: str
    name: str
    native_name: str
    flag: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "code": self.code,
            "name": self.name,
            "native_name": self.native_name,
            "flag": self.flag,
        }


LANGUAGES: List[Language] = [
    Language("en", "English", "English", "🇺🇸"),
    Language("id", "Indonesian", "Bahasa Indonesia", "🇮🇩"),
]

DEFAULT_LANGUAGE = "en"


_EN = {
    "common": {
        "loading": "Loading...",
        "save": "Save",
        "cancel": "Cancel",
        "edit": "Edit",
        "back": "Back",
        "next": "Next",
        "continue": "Continue",
        "close": "Close",
        "yes": "Yes",
        "no": "No",
        "search": "Search",
        "all": "All",
        "popular": "Popular",
        "none": "None",
        "unknown": "Unknown",
        "error": "Error",
        "success": "Success",
    },
    "nav": {
        "home": "Home",
        "profile": "Profile",
        "verification": "Verification",
        "login": "Login",
        "logout": "Logout",
    },
    "auth": {
        "welcome": "Welcome",
        "welcomeBack": "Welcome back, {name}!",
        "email": "Email",
        "phone": "Phone number",
        "loginButton": "Sign in",
        "loginSuccess": "Login successful!",
        "loginFailed": "Login failed. Please try again.",
        "invalidEmail": "Please enter a valid Gmail address",
        "invalidPhone": "Please enter a valid phone number",
        "gmailRequired": "Please use a Gmail address",
        "sessionExpired": "Your session has expired. Please sign in again.",
    },
    "currency": {
        "amount": "Amount",
        "fromCurrency": "From",
        "toCurrency": "To",
        "convertedAmount": "Converted amount",
        "exchangeRate": "Exchange rate",
        "convert": "Convert",
        "transfer": "Transfer",
        "invalidAmount": "Amount must be greater than 0",
        "conversionError": "Conversion failed",
        "exchangeRateError": "Exchange rate not available for {currency}",
    },
    "handDetection": {
        "title": "Hand Gesture",
        "instructions": "Show your open palm to the camera",
        "handDetected": "Hand detected",
        "handLost": "Hand lost",
        "preparing": "Preparing camera...",
        "detecting": "Detecting...",
        "cameraError": "Failed to access camera",
        "notSupported": "Hand detection not available",
    },
    "transfer": {
        "details": "Transfer details",
        "from": "From",
        "to": "To",
        "status": "Status",
        "success": "Transfer successful",
        "failed": "Transfer failed",
        "pending": "Pending",
        "completed": "Completed",
        "sent": "Sent",
        "received": "Received",
        "conversion": "Conversion",
        "fee": "Fee",
    },
    "profile": {
        "title": "Profile",
        "fullName": "Full name",
        "dateOfBirth": "Date of birth",
        "nationality": "Nationality",
        "occupation": "Occupation",
        "memberSince": "Member since",
        "lastLogin": "Last login",
        "profileUpdated": "Profile updated successfully!",
        "updateFailed": "Failed to update profile. Please try again.",
    },
    "banking": {
        "preferredBank": "Preferred bank",
        "accountNumber": "Account number",
        "accountHolder": "Account holder",
        "selectBank": "Select a bank",
        "noBank": "No bank selected",
        "bankTypes": {
            "government": "Government Bank",
            "private": "Private Bank",
            "regional": "Regional Bank",
            "foreign": "Foreign Bank",
            "syariah": "Sharia Bank",
        },
    },
    "verification": {
        "title": "Biometric Verification",
        "faceDetected": "Face detected",
        "handDetected": "Hand detected",
        "success": "Biometric verification successful",
        "bothRequired": "Both face and hand must be visible for verification",
        "cameraDenied": "Failed to access camera. Please ensure camera permissions are granted",
    },
    "language": {
        "selectLanguage": "Select Language",
        "changeLanguage": "Change Language",
    },
    "time": {
        "justNow": "Just now",
        "minutesAgo": "{count}m ago",
        "hoursAgo": "{count}h ago",
        "daysAgo": "{count}d ago",
    },
}

_ID = {
    "common": {
        "loading": "Memuat...",
        "save": "Simpan",
        "cancel": "Batal",
        "edit": "Ubah",
        "back": "Kembali",
        "next": "Berikutnya",
        "continue": "Lanjutkan",
        "close": "Tutup",
        "yes": "Ya",
        "no": "Tidak",
        "search": "Cari",
        "all": "Semua",
        "popular": "Populer",
        "none": "Tidak ada",
        "unknown": "Tidak diketahui",
        "error": "Kesalahan",
        "success": "Berhasil",
    },
    "nav": {
        "home": "Beranda",
        "profile": "Profil",
        "verification": "Verifikasi",
        "login": "Masuk",
        "logout": "Keluar",
    },
    "auth": {
        "welcome": "Selamat datang",
        "welcomeBack": "Selamat datang kembali, {name}!",
        "email": "Email",
        "phone": "Nomor telepon",
        "loginButton": "Masuk",
        "loginSuccess": "Berhasil masuk!",
        "loginFailed": "Gagal masuk. Silakan coba lagi.",
        "invalidEmail": "Masukkan alamat Gmail yang valid",
        "invalidPhone": "Masukkan nomor telepon yang valid",
        "gmailRequired": "Gunakan alamat Gmail",
        "sessionExpired": "Sesi Anda telah berakhir. Silakan masuk kembali.",
    },
    "currency": {
        "amount": "Jumlah",
        "fromCurrency": "Dari",
        "toCurrency": "Ke",
        "convertedAmount": "Jumlah konversi",
        "exchangeRate": "Kurs",
        "convert": "Konversi",
        "transfer": "Transfer",
        "invalidAmount": "Jumlah harus lebih dari 0",
        "conversionError": "Konversi gagal",
        "exchangeRateError": "Kurs tidak tersedia untuk {currency}",
    },
    "handDetection": {
        "title": "Gestur Tangan",
        "instructions": "Tunjukkan telapak tangan Anda ke kamera",
        "handDetected": "Tangan terdeteksi",
        "handLost": "Tangan tidak terlihat",
        "preparing": "Menyiapkan kamera...",
        "detecting": "Mendeteksi...",
        "cameraError": "Gagal mengakses kamera",
        "notSupported": "Deteksi tangan tidak tersedia",
    },
    "transfer": {
        "details": "Detail transfer",
        "from": "Dari",
        "to": "Ke",
        "status": "Status",
        "success": "Transfer berhasil",
        "failed": "Transfer gagal",
        "pending": "Menunggu",
        "completed": "Selesai",
        "sent": "Terkirim",
        "received": "Diterima",
        "conversion": "Konversi",
    },
    "profile": {
        "title": "Profil",
        "fullName": "Nama lengkap",
        "dateOfBirth": "Tanggal lahir",
        "nationality": "Kewarganegaraan",
        "occupation": "Pekerjaan",
        "memberSince": "Anggota sejak",
        "lastLogin": "Terakhir masuk",
        "profileUpdated": "Profil berhasil diperbarui!",
        "updateFailed": "Gagal memperbarui profil. Silakan coba lagi.",
    },
    "banking": {
        "preferredBank": "Bank pilihan",
        "accountNumber": "Nomor rekening",
        "accountHolder": "Pemilik rekening",
        "selectBank": "Pilih bank",
        "noBank": "Belum ada bank",
        "bankTypes": {
            "government": "Bank Pemerintah",
            "private": "Bank Swasta",
            "regional": "Bank Daerah",
            "foreign": "Bank Asing",
            "syariah": "Bank Syariah",
        },
    },
    "verification": {
        "title": "Verifikasi Biometrik",
        "faceDetected": "Wajah terdeteksi",
        "handDetected": "Tangan terdeteksi",
        "success": "Verifikasi biometrik berhasil",
        "bothRequired": "Wajah dan tangan harus terlihat untuk verifikasi",
    },
    "language": {
        "selectLanguage": "Pilih Bahasa",
        "changeLanguage": "Ubah Bahasa",
    },
    "time": {
        "justNow": "Baru saja",
        "minutesAgo": "{count} menit lalu",
        "hoursAgo": "{count} jam lalu",
        "daysAgo": "{count} hari lalu",
    },
}


def flatten_translations(tree: Mapping[str, Any], prefix: str = "") -> Dict[str, str]:
    """Flatten a nested table into {"auth.login": "..."} form"""
    flat: Dict[str, str] = {}
    for key, value in tree.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(flatten_translations(value, prefix=f"{dotted}."))
        else:
            flat[dotted] = str(value)
    return flat


TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": flatten_translations(_EN),
    "id": flatten_translations(_ID),
}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def is_supported_language(code: Optional[str]) -> bool:
    return any(lang.code == code for lang in LANGUAGES)


def get_language(code: str) -> Language:
    """Language record for a code, defaulting to English"""
    for lang in LANGUAGES:
        if lang.code == code:
            return lang
    return LANGUAGES[0]


class LanguagePreference:
    """Current language, persisted under the "language" storage key"""

    def __init__(self, storage: LocalStorage, default: str = DEFAULT_LANGUAGE):
        self.storage = storage
        self.default = default if is_supported_language(default) else DEFAULT_LANGUAGE
        self.code = self.default

    def init(self, preferred: Optional[str] = None) -> str:
        """
        Restore the saved language, else the client's preferred one.

        Args:
            preferred: Accept-Language style value such as "id-ID,id;q=0.9"
        """
        saved = self.storage.get_item(LANGUAGE_KEY)
        if is_supported_language(saved):
            self.code = saved
            return self.code

        detected = None
        if preferred:
            detected = preferred.split(",")[0].split(";")[0].strip().split("-")[0].lower()
        self.code = detected if is_supported_language(detected) else self.default
        return self.code

    def set_language(self, code: str) -> bool:
        """Switch and persist; unsupported codes are ignored"""
        if not is_supported_language(code):
            logger.debug(f"Ignoring unsupported language {code!r}")
            return False
        self.code = code
        self.storage.set_item(LANGUAGE_KEY, code)
        return True

    @property
    def current(self) -> Language:
        return get_language(self.code)


class Translator:
    """Dotted-key lookup with English fallback, then the key itself"""

    def __init__(self, preference: Optional[LanguagePreference] = None,
                 translations: Optional[Dict[str, Dict[str, str]]] = None):
        self.preference = preference
        self.translations = translations if translations is not None else TRANSLATIONS

    def translate(self, key: str, params: Optional[Mapping[str, Any]] = None,
                  language: Optional[str] = None) -> str:
        code = language or (self.preference.code if self.preference else DEFAULT_LANGUAGE)

        value = self.translations.get(code, {}).get(key)
        if value is None:
            value = self.translations.get(DEFAULT_LANGUAGE, {}).get(key)
        if value is None:
            return key

        if params:
            value = _PLACEHOLDER.sub(
                lambda m: str(params[m.group(1)]) if m.group(1) in params else m.group(0),
                value
            )
        return value

    __call__ = translate


_MONTHS = {
    "en": ["January", "February", "March", "April", "May", "June", "July",
           "August", "September", "October", "November", "December"],
    "id": ["Januari", "Februari", "Maret", "April", "Mei", "Juni", "Juli",
           "Agustus", "September", "Oktober", "November", "Desember"],
}


def _separators(language: str):
    # (thousands, decimal)
    return (".", ",") if language == "id" else (",", ".")


def format_number(number: Union[int, float, Decimal], language: str = DEFAULT_LANGUAGE,
                  decimals: Optional[int] = None) -> str:
    """Group digits the way en-US or id-ID does"""
    value = Decimal(str(number))
    if decimals is not None:
        value = value.quantize(Decimal('0.1') ** decimals, rounding=ROUND_HALF_UP)
    text = f"{value:,f}" if decimals is None else f"{value:,.{decimals}f}"
    thousands, decimal_point = _separators(language)
    return text.replace(",", "\0").replace(".", decimal_point).replace("\0", thousands)


def format_currency(amount: Union[int, float, Decimal], currency: str,
                    language: str = DEFAULT_LANGUAGE) -> str:
    """Two-decimal amount prefixed with the ISO code, e.g. "IDR 1.000,00" """
    return f"{currency} {format_number(amount, language, decimals=2)}"


def format_date(value: Union[date, datetime, str], language: str = DEFAULT_LANGUAGE) -> str:
    """Long date: "January 15, 2024" (en) or "15 Januari 2024" (id)"""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    months = _MONTHS.get(language, _MONTHS["en"])
    month = months[value.month - 1]
    if language == "id":
        return f"{value.day} {month} {value.year}"
    return f"{month} {value.day}, {value.year}"
