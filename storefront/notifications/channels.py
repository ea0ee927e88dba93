from enum import Enum


class Channel(str, Enum):
    EMAIL_USER = "email_user"
    EMAIL_ADMIN = "email_admin"
