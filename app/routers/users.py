# =============================================================================
# app/routers/users.py - Example User Endpoints
# =============================================================================
# Placeholder endpoints showing the endpoint pattern: input schema with a
# transform, output schema with examples, a middleware contribution and
# explicit HTTP errors. The business rules (ids above 100 do not exist,
# updates are not implemented) are scaffolding to replace.
# =============================================================================

from datetime import datetime

from pydantic import Field

from app.middlewares import method_provider_middleware
from app.services import examples
from core.endpoints import EndpointsFactory
from core.errors import HttpError
from core.schemas import InputModel, NumericId, OutputModel
from lib.utils import safe_async

# Ids above this threshold are treated as unknown users
MAX_KNOWN_USER_ID = 100

users_factory = EndpointsFactory().add_middleware(method_provider_middleware)


# =============================================================================
# Request/Response Models
# =============================================================================

class GetUserInput(InputModel):
    """Path parameters for user retrieval."""
    id: NumericId = Field(description="a numeric string containing the id of the user")

    model_config = {
        "json_schema_extra": {
            "examples": [{"id": "12"}]
        }
    }


class GetUserOutput(OutputModel):
    """Result of a user lookup."""
    demo_data: str

    model_config = {
        "json_schema_extra": {
            "examples": [{"demoData": "Querying User 12 succeed!"}]
        }
    }


class UpdateUserInput(InputModel):
    """Path parameter plus the new name."""
    id: NumericId = Field(description="a numeric string containing the id of the user")
    name: str = Field(min_length=1, description="the new name of the user")

    model_config = {
        "json_schema_extra": {
            "examples": [{"id": "12", "name": "John Doe"}]
        }
    }


class UpdateUserOutput(OutputModel):
    """The updated user."""
    name: str
    created_at: datetime


# =============================================================================
# Handlers
# =============================================================================

async def get_user(*, input: GetUserInput, context, logger):
    logger.debug(f"Requested id: {input.id}, method {context['method']}")

    if input.id > MAX_KNOWN_USER_ID:
        raise HttpError(404, "User not found")

    # The optional call may fail; the lookup itself still succeeds
    result = await safe_async(examples.example_with_random_throw)
    if not result.ok:
        return {"demo_data": f"Querying User {input.id} failed safely: {result.error}"}

    return {"demo_data": f"Querying User {input.id} succeed!"}


def update_user(*, input: UpdateUserInput, context, logger):
    logger.debug(f"Requested id: {input.id}, method {context['method']}, Name to set: {input.name}")

    if input.id > MAX_KNOWN_USER_ID:
        raise HttpError(404, "User not found")

    raise HttpError(500, "Not implemented yet!")


# =============================================================================
# Endpoints
# =============================================================================

get_user_endpoint = users_factory.build(
    method="get",
    tag="users",
    summary="Retrieves an user by its ID.",
    description="Example user retrieval endpoint.",
    input=GetUserInput,
    output=GetUserOutput,
    handler=get_user,
)

update_user_endpoint = users_factory.build(
    method="post",
    tag="users",
    summary="Updates an user by its ID.",
    description="Example user update endpoint.",
    input=UpdateUserInput,
    output=UpdateUserOutput,
    handler=update_user,
)
