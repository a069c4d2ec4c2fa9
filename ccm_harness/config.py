# /*
# Copyright 2026 The ccm-harness Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Configuration classes and cluster options."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ccm_harness.constants import (
    ADS_COMMAND_TIMEOUT_SECONDS,
    ADS_JAR_NAME,
    ADS_JAVA_EXECUTABLE,
    ADS_START_TIMEOUT_SECONDS,
    CCM_DEFAULT_SUBPATH,
    CCM_EXECUTABLE,
    DEFAULT_IP_PREFIX,
    DEFAULT_SERVER_VERSION,
    READINESS_MAX_ATTEMPTS,
    READINESS_POLL_INTERVAL_SECONDS,
)


# ============================================================================
# Configuration classes
# ============================================================================

class CcmConfig(BaseSettings):
    """ccm and server configuration, auto-loaded from CCM_* env vars.

    Attributes:
        version: Server version handed to ``ccm create -v``.
        is_dse: Whether the server is DataStax Enterprise rather than Cassandra.
        install_dir: Local server installation to use instead of a download.
        path: Root of the ccm checkout, or None for ``$HOME/workspace/tools/ccm``.
        executable: Name of the ccm executable.
        ip_prefix: Address prefix nodes are bound to (node k gets ``<prefix>k``).
        readiness_attempts: Maximum ``showlog`` checks before giving up.
        readiness_delay: Seconds between two unsuccessful ``showlog`` checks.
    """

    model_config = SettingsConfigDict(env_prefix="CCM_", extra="ignore")

    version: str = Field(default=DEFAULT_SERVER_VERSION, pattern=r"^\d+(\.\d+)*([-.][\w.]+)?$")
    is_dse: bool = False
    install_dir: str | None = None
    path: Path | None = None
    executable: str = CCM_EXECUTABLE
    ip_prefix: str = DEFAULT_IP_PREFIX
    readiness_attempts: int = Field(default=READINESS_MAX_ATTEMPTS, ge=1)
    readiness_delay: float = Field(default=READINESS_POLL_INTERVAL_SECONDS, ge=0)

    def tool_path(self, sub_path: str = "") -> Path:
        """Resolve a path inside the ccm checkout.

        Args:
            sub_path: Path relative to the ccm root (e.g. ``ssl``).

        Returns:
            Absolute path under ``CCM_PATH`` or the default checkout location.
        """
        root = self.path if self.path is not None else Path.home() / CCM_DEFAULT_SUBPATH
        return root / sub_path


class AdsConfig(BaseSettings):
    """Embedded ADS configuration, auto-loaded from ADS_* env vars.

    Attributes:
        jar: Path of the embedded-ads jar, or None for ``$HOME/embedded-ads.jar``.
        java: Java executable used to launch the jar.
        start_timeout: Seconds to wait for principal initialization.
        command_timeout: Seconds allowed for each kinit/klist/kdestroy call.
        workdir_root: Parent directory for per-run working directories.
    """

    model_config = SettingsConfigDict(env_prefix="ADS_", extra="ignore")

    jar: Path | None = None
    java: str = ADS_JAVA_EXECUTABLE
    start_timeout: float = Field(default=ADS_START_TIMEOUT_SECONDS, gt=0)
    command_timeout: float = Field(default=ADS_COMMAND_TIMEOUT_SECONDS, gt=0)
    workdir_root: Path | None = None

    def jar_path(self) -> Path:
        if self.jar is not None:
            return self.jar
        return Path.home() / ADS_JAR_NAME


class TraceConfig(BaseSettings):
    """Test tracing switch, read from ``TEST_TRACE``."""

    model_config = SettingsConfigDict(extra="ignore")

    test_trace: str = "off"

    @property
    def enabled(self) -> bool:
        return self.test_trace.strip().lower() == "on"


# ============================================================================
# Cluster options
# ============================================================================

@dataclass(frozen=True)
class ClusterOptions:
    """Options for provisioning a ccm cluster.

    Sequence fields accept any iterable and are stored as tuples.

    Attributes:
        vnodes: Whether to populate with virtual nodes.
        ssl: Whether to enable client encryption with the ccm ssl material.
        partitioner: Partitioner class name, or None for the server default.
        yaml: ``key: value`` overlays applied with ``ccm updateconf``.
        dse_yaml: ``key: value`` overlays applied with ``ccm updatedseconf``.
        jvm_args: Extra JVM arguments passed to ``ccm start``.
        workloads: DSE workloads applied with ``ccm setworkload``.
        sleep: Seconds to pause after the create, populate, and start steps.
        ip_format: Custom ``--ip-format`` for populate, or None.
    """

    vnodes: bool = False
    ssl: bool = False
    partitioner: str | None = None
    yaml: tuple[str, ...] = ()
    dse_yaml: tuple[str, ...] = ()
    jvm_args: tuple[str, ...] = ()
    workloads: tuple[str, ...] = ()
    sleep: float = 0
    ip_format: str | None = None

    def __post_init__(self) -> None:
        for field in fields(self):
            value = getattr(self, field.name)
            if field.name in ("yaml", "dse_yaml", "jvm_args", "workloads"):
                if isinstance(value, str):
                    raise TypeError(f"{field.name} must be a sequence of strings, not a string")
                object.__setattr__(self, field.name, tuple(value or ()))
        if self.sleep < 0:
            raise ValueError("sleep must not be negative")
