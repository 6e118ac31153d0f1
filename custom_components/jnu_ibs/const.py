"""Constants for the JNU IBS integration."""

from enum import IntEnum

DOMAIN = "jnu_ibs"

# API Configuration
API_BASE_URL = "https://pynhcx.jnu.edu.cn/IBSjnuweb/WebService/JNUService.asmx/"
FALLBACK_URL = "https://ibs1.glasser.top/IBSjnuweb/WebService/JNUService.asmx/"
API_LOGIN = "Login"
API_USER_INFO = "GetUserInfo"
API_SUBSIDY = "GetSubsidy"
API_BILL_COST = "GetBillCost"
API_PAYMENT_RECORD = "GetPaymentRecord"
API_METRICAL_DATA = "GetCustomerMetricalData"

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) IBSJnuClient/1.0"

# Request timeouts in seconds
CONNECT_TIMEOUT = 5
READ_TIMEOUT = 10

# Pre-shared AES-128 key and IV baked into every IBS client
AES_KEY = "CetSoftEEMSysWeb"
AES_IV_HEX = "1934577290ABCDEF1264147890ACAE45"

# Open-ended range the backend accepts for "current period" queries
FULL_RANGE_START = "2000-01-01"
FULL_RANGE_END = "2099-12-31"

BALANCE_MARKER = "余额"
MIN_UNIT_PRICE = 0.001

# Update Intervals
UPDATE_INTERVAL_OVERVIEW = 3600  # 1 hour
UPDATE_INTERVAL_TRENDS = 21600  # 6 hours

# Config keys
CONF_ROOM = "room"
CONF_BASE_URL = "base_url"
CONF_DAYS_TO_COVER = "days_to_cover"
CONF_ROOMMATES = "roommates"

DEFAULT_DAYS_TO_COVER = 30
DEFAULT_ROOMMATES = 4
DEFAULT_RECORD_COUNT = 20

CURRENCY = "CNY"


class EnergyType(IntEnum):
    """Utility type identifiers used by the IBS backend."""

    ALL = 0
    ELEC = 2
    COLD_WATER = 3
    HOT_WATER = 4


# Short keys used in the overview dict
UTILITY_KEYS = {
    EnergyType.ELEC: "elec",
    EnergyType.COLD_WATER: "cold",
    EnergyType.HOT_WATER: "hot",
}

# Fallback unit prices (CNY per kWh / m³)
RATES = {
    EnergyType.ELEC: 0.647,
    EnergyType.COLD_WATER: 2.82,
    EnergyType.HOT_WATER: 25.0,
}

UNITS = {
    EnergyType.ELEC: "kWh",
    EnergyType.COLD_WATER: "m³",
    EnergyType.HOT_WATER: "m³",
}
