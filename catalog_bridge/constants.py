# Item status reported by OLE for checked-out copies. Every other status,
# including unknown ones, is treated as available.
STATUS_LOANED = "LOANED"

# Embedded <code> values in circulation responses.
CODE_SUCCESS = "000"
CODE_RENEWED = "003"
CODE_HOLD_PLACED = "021"

UNKNOWN_TITLE = "unknown title"
OVERDUE = "overdue"

HOLD_REQUEST_TYPE = "Page/Hold Request"

BATCH_PAGE_SIZE = 100
HOLDINGS_ROWS = 100000

RESPONSE_WRITER = "json"
NAMED_LIST_IMPLEMENTATION = "arrarr"

JSON_MEDIA_TYPE = "application/json"
