from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class StoreSettings(BaseModel):
    backend: Literal["auto", "registry", "file"] = "auto"
    user_path: Path = Path("~/.config/hostenv/user-environment.yaml")
    machine_path: Path = Path("/etc/hostenv/machine-environment.yaml")

    model_config = ConfigDict(extra="forbid")


class FailFastSettings(BaseModel):
    # Dump every thread's stack to stderr before aborting
    dump_traceback: bool = True

    model_config = ConfigDict(extra="forbid")


class EnvironmentSettings(BaseModel):
    stores: StoreSettings = Field(default_factory=StoreSettings)
    fail_fast: FailFastSettings = Field(default_factory=FailFastSettings)

    model_config = ConfigDict(extra="forbid")
