"""Pydantic models for the parts of Telegram updates the bot reads."""

from pydantic import BaseModel, Field


class TelegramUser(BaseModel):
    id: int
    is_bot: bool | None = None
    first_name: str | None = None
    username: str | None = None


class TelegramChat(BaseModel):
    id: int
    type: str


class TelegramPhotoSize(BaseModel):
    """One resolution of an uploaded photo."""

    file_id: str
    file_unique_id: str
    width: int
    height: int
    file_size: int | None = None

    @property
    def area(self) -> int:
        return self.width * self.height


class TelegramMessage(BaseModel):
    """Inbound message; photos carry their prompt in ``caption``."""

    message_id: int
    date: int
    chat: TelegramChat
    from_user: TelegramUser = Field(alias="from")
    text: str | None = None
    caption: str | None = None
    photo: list[TelegramPhotoSize] | None = None

    def largest_photo(self) -> TelegramPhotoSize | None:
        """Return the highest-resolution size Telegram sent, if any."""
        if not self.photo:
            return None
        return max(self.photo, key=lambda size: size.area)


class TelegramCallbackQuery(BaseModel):
    """Inline keyboard press."""

    id: str
    from_user: TelegramUser = Field(alias="from")
    message: TelegramMessage | None = None
    data: str | None = None


class TelegramUpdate(BaseModel):
    update_id: int
    message: TelegramMessage | None = None
    callback_query: TelegramCallbackQuery | None = None

    @property
    def sender_id(self) -> int | None:
        """Telegram id of the user behind the update."""
        if self.callback_query:
            return self.callback_query.from_user.id
        if self.message:
            return self.message.from_user.id
        return None
