"""
Pydantic schemas for CloudAPI machine resources.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Machine(BaseModel):
    """An SDC instance."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(description="Machine UUID")
    name: Optional[str] = Field(None, description="Machine alias")
    type: Optional[str] = Field(None, description="'virtualmachine' or 'smartmachine'")
    state: Optional[str] = Field(None, description="provisioning, running, stopped, ...")
    dataset: Optional[str] = Field(None, description="Dataset URN (deprecated by image)")

    memory: Optional[int] = Field(None, description="RAM in MiB")
    disk: Optional[int] = Field(None, description="Disk in MiB")

    ips: List[str] = Field(default_factory=list, description="IP addresses")
    metadata: Dict[str, str] = Field(default_factory=dict, description="Machine metadata")

    # ISO 8601
    created: Optional[datetime] = Field(None, description="Creation time")
    updated: Optional[datetime] = Field(None, description="Last update time")

    package: Optional[str] = Field(None, description="Package name")
    image: Optional[str] = Field(None, description="Image UUID")
    credentials: bool = Field(False, description="Whether credentials are available")


class CreateMachineRequest(BaseModel):
    """Parameters for create_machine(). Only image and package are required."""
    image: str = Field(description="Image UUID")
    package: str = Field(description="Package name or UUID")
    name: Optional[str] = Field(None, description="Machine alias")

    networks: Optional[List[str]] = Field(None, description="Network UUIDs")
    default_networks: Optional[List[str]] = Field(None, description="'public' and/or 'internal'")

    metadata: Optional[Dict[str, str]] = Field(None, description="Metadata to attach")
    tags: Optional[Dict[str, str]] = Field(None, description="Tags to attach")

    firewall_enabled: Optional[bool] = Field(None, description="Enable the cloud firewall")
