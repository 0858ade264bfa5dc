from enum import Enum, IntEnum

# Multicast group for SSDP
SSDP_HOST = "239.255.255.250"

# Wildcard search target: accept every response
SSDP_ALL = "ssdp:all"

SSDP_DISCOVER = '"ssdp:discover"'
SEARCH_METHOD = "M-SEARCH * HTTP/1.1"
OK_STATUS_LINE = "HTTP/1.1 200 OK"


# --- Ports ---
class Port(IntEnum):
    SSDP = 1900


# --- Session timing (seconds) ---
DEFAULT_MAXIMUM_WAIT_RESPONSE_TIME = 3.0
DEFAULT_SEARCH_TIMEOUT = 10.0

# --- Socket ---
RECV_BUF_SIZE = 4096
RECV_POLL_INTERVAL = 0.5  # receive() wakes up this often to re-check state
MULTICAST_TTL = 2


# --- Session states ---
class SessionState(Enum):
    IDLE = "idle"
    LISTENING = "listening"
    STOPPED = "stopped"
