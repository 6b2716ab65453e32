class CourtsideError(Exception):
    """Base class for errors reported back to a single connection."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RoomNotFound(CourtsideError):
    def __init__(self, key: str):
        super().__init__('Room not found')
        self.key = key


class CourtNotFound(CourtsideError):
    def __init__(self, key: str, court_id):
        super().__init__(f'Court {court_id} not found')
        self.key = key
        self.court_id = court_id


class InvalidName(CourtsideError):
    def __init__(self):
        super().__init__('Player name must not be empty')


class InvalidPayload(CourtsideError):
    pass


class DuplicateKey(CourtsideError):
    def __init__(self, key: str):
        super().__init__(f'Room key {key} is already in use')
        self.key = key
