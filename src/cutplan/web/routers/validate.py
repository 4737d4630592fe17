"""Configuration validation endpoints."""

from fastapi import APIRouter

from cutplan.application.config import load_config_from_dict, validate_config
from cutplan.infrastructure import validation_to_dict
from cutplan.web.schemas.requests import ConfigValidateRequest
from cutplan.web.schemas.responses import ValidationResultSchema

router = APIRouter(prefix="/validate", tags=["validate"])


@router.post("", response_model=ValidationResultSchema)
async def validate_configuration(
    request: ConfigValidateRequest,
) -> ValidationResultSchema:
    """Validate a cut plan configuration without optimizing it.

    Schema errors are reported with a 422 response by the ConfigError
    handler; advisories come back as warnings next to the balance of
    demanded and stocked area per material.
    """
    config = load_config_from_dict(request.config)
    return ValidationResultSchema(**validation_to_dict(validate_config(config)))
