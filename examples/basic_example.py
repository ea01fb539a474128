"""
Basic usage example for specmachine.

This example demonstrates:
- Function routes and a class-based controller
- Path, query, header and body parameters
- Multiple documents split by group name
- Filters and conflict resolution
- Writing the document to docs/openapi.json
"""

import logging
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

from specmachine import (
    DocumentGenerator,
    FromHeader,
    GeneratorOptions,
    Required,
    Router,
    SpecMachineError,
    docstring_operation_filter,
    http_delete,
    http_get,
    http_post,
    obsolete,
)


class User(BaseModel):
    id: str
    name: str
    email: str


class CreateUser(BaseModel):
    name: str = Field(..., min_length=1)
    email: str


# Create the routers
app = Router()
health = Router(controller="Health")
users_v2 = Router(controller="Users", group_name="v2")


@health.get("/health")
def health_check() -> None:
    """Report service health."""


@app.controller("/users")
class UsersController:

    @http_get()
    def list_users(self, search: Optional[str] = None, limit: int = 20) -> List[User]:
        """List all users.

        Users are ordered by name.
        """

    @http_get("/{user_id}", name="get_user", responses={404: None})
    def get_user(
        self,
        user_id: str,
        request_id: Annotated[Optional[str], FromHeader(name="X-Request-Id")] = None,
    ) -> User:
        """Get a specific user."""

    @http_post(name="create_user")
    def create_user(self, user: CreateUser) -> User:
        """Create a new user."""

    @obsolete("use DELETE /v2/users/{user_id}")
    @http_delete("/{user_id}")
    def delete_user(self, user_id: str) -> None:
        """Delete a user."""


@users_v2.delete("/users/{user_id}")
def delete_user_v2(user_id: str, reason: Annotated[str, Required()]) -> None:
    """Delete a user, recording why."""


app.mount("/", health)
app.mount("/v2", users_v2)


def main():
    """Generate both documents and save them."""
    logging.basicConfig(level=logging.INFO)

    options = GeneratorOptions(
        documents={
            "v1": {"title": "Users API", "version": "1.0.0"},
            "v2": {"title": "Users API", "version": "2.0.0"},
        },
        operation_filters=[docstring_operation_filter],
        security_schemes={"bearer": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}},
        security_requirements=[{"bearer": []}],
    )
    generator = DocumentGenerator(app, options=options)

    try:
        print(generator.generate_json("v1", host="https://api.example.com"))
        generator.save_json("v1")
        generator.save_json("v2", filename="openapi-v2.json")
    except SpecMachineError as e:
        print(f"Unable to generate documents: {e}")


if __name__ == "__main__":
    main()
