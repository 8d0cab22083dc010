class RoomError(Exception):
    """Base for failures reported back to the participant who caused them."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RoomError):
    pass


class UsernameTakenError(ValidationError):
    def __init__(self, room_id: str, username: str):
        super().__init__('Username is already taken in this room')
        self.room_id = room_id
        self.username = username


class NotFoundError(RoomError):
    pass


class ForbiddenError(RoomError):
    pass
