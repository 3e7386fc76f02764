from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, StrictBool, StrictInt, conint, constr

Address = constr(strip_whitespace=True, min_length=1, max_length=66)


class CallerInput(BaseModel):
    caller: Address


class CreateScheduleInput(BaseModel):
    caller: Address
    beneficiary: Address
    start_time: conint(ge=0)
    interval_length: conint(gt=0)
    total_intervals: conint(gt=0)
    total_amount: conint(ge=0)


class ConsentInput(BaseModel):
    caller: Address
    consent: StrictBool


class EmergencyWithdrawInput(BaseModel):
    caller: Address
    destination: Address


class ParameterUpdateInput(BaseModel):
    caller: Address
    name: Literal["total_amount", "start_time", "total_intervals", "beneficiary"]
    value: StrictInt | str = Field(union_mode="left_to_right")


class TokenTransferInput(BaseModel):
    caller: Address
    recipient: Address
    amount: conint(ge=0)
