import re

CONFIG_FILE_NAME = "config.yaml"

# Storage keys for the two top-level collections
KV_KEY_PROFILES = "subfusion:profiles"
KV_KEY_SUBS = "subfusion:subscriptions"

DEFAULT_USER_AGENT = "clash.meta"
DEFAULT_RENAME_TEMPLATE = "{emoji}{region}-{protocol}-{index}"
EMOJI_PLACEHOLDER = "{emoji}"

MANUAL_NODE_LABEL = "Manual node"
UNKNOWN_SUBSCRIPTION_LABEL = "unknown"
SYSTEM_NOTICE_LABEL = "System notice"
UNKNOWN_REGION = "Other"

# Regular expressions shared across modules
PROTOCOL_RE = re.compile(
    r"(?:"
    r"vmess|vless|reality|ssr?|trojan|hy2|hysteria2?|tuic|"
    r"naive\+https|naive|socks5|socks4|socks|anytls|snell"
    r")://\S+",
    re.IGNORECASE,
)
BASE64_RE = re.compile(r"^[A-Za-z0-9+/=_-]+$")
HTTP_SCHEME_RE = re.compile(r"^http")
MAX_DECODE_SIZE = 4 * 1024 * 1024  # 4 MB
