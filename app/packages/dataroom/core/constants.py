"""常量定义：HTTP 状态码、默认账号与回收站相关的固定取值。"""

HTTP_STATUS_OK = 200
HTTP_STATUS_CREATED = 201
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_FORBIDDEN = 403
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_CONFLICT = 409
HTTP_STATUS_INTERNAL_SERVER_ERROR = 500

ACCESS_TOKEN_TYPE = "bearer"

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"
DEFAULT_ADMIN_NICKNAME = "管理员"
DEFAULT_TEAM_NAME = "默认团队"

# 新建文件夹遇到重名时最多尝试追加 " (n)" 的次数
FOLDER_NAME_MAX_RETRIES = 50
# slug 为空时（例如名称全部为符号）使用的兜底片段
EMPTY_SLUG_FALLBACK = "untitled"

CRON_SIGNATURE_HEADER = "Upstash-Signature"
CRON_SIGNATURE_ISSUER = "Upstash"
