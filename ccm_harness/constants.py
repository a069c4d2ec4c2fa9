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

"""Constants for ccm invocations, readiness markers, and the embedded ADS."""

from __future__ import annotations

# -- Server defaults --
DEFAULT_SERVER_VERSION = "3.11.4"
DEFAULT_CASSANDRA_FOR_DSE = "3.11"

# major.minor DSE release -> Apache Cassandra release it embeds
CASSANDRA_VERSION_BY_DSE = {
    "4.8": "2.1",
    "5.0": "3.0",
    "5.1": "3.11",
    "6.0": "3.11",
    "6.7": "3.11",
    "6.8": "3.11",
}

# CASSANDRA-12510: decommission refuses to drop below RF without --force
FORCED_DECOMMISSION_DSE_VERSION = "5.1"

# -- ccm --
CCM_EXECUTABLE = "ccm"
CCM_DEFAULT_SUBPATH = "workspace/tools/ccm"
CCM_SSL_SUBPATH = "ssl"
CCM_CURRENT_MARKER = "*"
DEFAULT_IP_PREFIX = "127.0.0."
DEFAULT_CLUSTER_PREFIX = "test"
RANDOM_NAME_PREFIX = "ab"
RANDOM_NAME_DIGITS = 16
RANDOM_NAME_MAX = 2**53 - 1

BOOTSTRAP_JMX_BASE_PORT = 7000
BOOTSTRAP_JMX_PORT_STEP = 100

# -- Readiness --
CQL_READY_PATTERN = r"Starting listening for CQL clients"
READINESS_MAX_ATTEMPTS = 60
READINESS_POLL_INTERVAL_SECONDS = 1.0
READINESS_NODE = 1

DEFAULT_POLL_MAX_ATTEMPTS = 20
DEFAULT_POLL_INTERVAL_SECONDS = 1.0

# -- Embedded ADS --
ADS_JAR_NAME = "embedded-ads.jar"
ADS_JAVA_EXECUTABLE = "java"
ADS_READY_MARKER = "Principal Initialization Complete."
ADS_WORKDIR_PREFIX = "ads"
ADS_START_TIMEOUT_SECONDS = 10.0
ADS_COMMAND_TIMEOUT_SECONDS = 10.0
KRB5_CONFIG_ENV = "KRB5_CONFIG"
KRB5_CONFIG_FILE = "krb5.conf"
KEYTAB_SUFFIX = ".keytab"

KINIT_EXECUTABLE = "kinit"
KLIST_EXECUTABLE = "klist"
KDESTROY_EXECUTABLE = "kdestroy"

# -- Windows shell wrapping --
WINDOWS_SHELL = "cmd.exe"
WINDOWS_SHELL_FLAG = "/c"

# -- Process output --
OUTPUT_ENCODING = "utf-8"
READ_CHUNK_SIZE = 4096
