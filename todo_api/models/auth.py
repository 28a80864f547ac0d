from typing import Union

from todo_api.models.link_sharing import LinkSharing
from todo_api.models.user import User

# The principal a request acts as: a logged in user or a link share token.
Auth = Union[User, LinkSharing]
