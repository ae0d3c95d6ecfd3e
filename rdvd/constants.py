# Rendezvous relay protocol constants (envelope keys and message types)

# Envelope keys
K_TYPE = "type"
K_ROOM = "roomName"
K_USER = "userName"
K_USER_ID = "userId"
K_USERS = "users"
K_FROM = "from"
K_MESSAGE = "message"
K_OFFER = "offer"
K_ANSWER = "answer"
K_CANDIDATE = "candidate"
K_ENABLED = "enabled"
K_EXISTS = "exists"
K_MEMBER_COUNT = "memberCount"
K_MAX_MEMBERS = "maxMembers"

# Member entries inside a "users" list
M_ID = "id"
M_NAME = "name"

# Inbound message types
T_CREATE_ROOM = "create-room"
T_JOIN_ROOM = "join-room"
T_OFFER = "offer"
T_ANSWER = "answer"
T_ICE_CANDIDATE = "ice-candidate"
T_TOGGLE_VIDEO = "toggle-video"
T_TOGGLE_AUDIO = "toggle-audio"
T_GET_ROOM_INFO = "get-room-info"

# Outbound message types
T_ROOM_CREATED = "room-created"
T_ROOM_JOINED = "room-joined"
T_USER_JOINED = "user-joined"
T_USER_LEFT = "user-left"
T_USER_VIDEO_TOGGLE = "user-video-toggle"
T_USER_AUDIO_TOGGLE = "user-audio-toggle"
T_ROOM_INFO = "room-info"
T_ROOM_ERROR = "room-error"
T_ERROR = "error"

# Rooms pair exactly two peers.
MAX_ROOM_MEMBERS = 2

# Wire formats
WIRE_JSON = "json"
WIRE_CBOR = "cbor"

# Error texts sent to clients
ERR_INVALID_FORMAT = "Invalid message format"
ERR_ROOM_EXISTS = "Room already exists"
ERR_ROOM_NOT_FOUND = "Room does not exist"
ERR_ROOM_FULL = "Room is full"
ERR_ALREADY_IN_ROOM = "Already in a room"
ERR_INVALID_ROOM_NAME = "Invalid room name"
ERR_NOT_A_MEMBER = "Not a member of this room"

HEALTH_STATUS = "Server is running"
