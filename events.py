# Outbound events
USERS_IN_ROOM = "usersInRoom"  # joining connection - members already present
NEW_USER_CONNECTED = "newUserConnected"  # other members - {id, name} of the joiner
USER_DISCONNECTED = "userDisconnected"  # remaining members - {userId}
SIGNAL = "signal"  # target connection - {from, data}

# Transport handshake, sent once before usersInRoom so the client learns its own id
CONNECTED = "connected"

# Inbound events
INBOUND_SIGNAL = "signal"  # {to, data}

# WebSocket close codes
CLOSE_POLICY_VIOLATION = 1008
