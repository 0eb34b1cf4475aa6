"""GetUserStatus response models."""

from typing import Optional
from pydantic import BaseModel, Field

from .quota import QuotaRecord


class QuotaInfo(BaseModel):
    """Per-model quota details."""
    remaining_fraction: Optional[float] = Field(None, alias="remainingFraction")
    reset_time: Optional[str] = Field(None, alias="resetTime")


class ClientModelConfig(BaseModel):
    """A model entry under cascadeModelConfigData."""
    label: str = ""
    quota_info: Optional[QuotaInfo] = Field(None, alias="quotaInfo")

    def to_record(self) -> QuotaRecord:
        """Convert to a QuotaRecord, filling in defaults for missing fields."""
        fraction = 1.0
        reset_time = None
        if self.quota_info:
            if self.quota_info.remaining_fraction is not None:
                fraction = self.quota_info.remaining_fraction
            reset_time = self.quota_info.reset_time or None
        return QuotaRecord(
            model_label=self.label,
            remaining_fraction=fraction,
            reset_timestamp=reset_time,
        )


class CascadeModelConfigData(BaseModel):
    """Model configuration block."""
    client_model_configs: list[ClientModelConfig] = Field(alias="clientModelConfigs")


class UserStatus(BaseModel):
    """The userStatus object."""
    cascade_model_config_data: CascadeModelConfigData = Field(alias="cascadeModelConfigData")


class UserStatusResponse(BaseModel):
    """Top-level GetUserStatus response.

    Every level of userStatus.cascadeModelConfigData.clientModelConfigs is
    required; a body without it does not count as usable data.
    """
    user_status: UserStatus = Field(alias="userStatus")

    def to_records(self) -> list[QuotaRecord]:
        """Records in server order."""
        return [
            config.to_record()
            for config in self.user_status.cascade_model_config_data.client_model_configs
        ]
