"""
This module contains the configuration settings for the webhook launcher.
It defines the pinned base image, the provisioning and build commands, paths,
logging configuration and the container descriptor templates.
"""

import os
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

#* --- Core Paths ---
PACKAGE_DIR = pathlib.Path(__file__).resolve().parent
BASE_DIR = PACKAGE_DIR.parent  # Project Root

#* --- Base Environment ---
# Pinned literal. Never read from the environment and never overridable.
BASE_IMAGE = "rust:1.70-slim-bullseye"
FLOATING_IMAGE_TAGS = {"latest", "stable", "nightly", "slim"}

#* --- Working Context ---
WORKDIR = pathlib.Path(os.getenv("WEBHOOK_LAUNCHER_WORKDIR", "/usr/src/webhook"))
OVERRIDES_JSON_PATH = pathlib.Path(
    os.getenv("WEBHOOK_LAUNCHER_OVERRIDES", str(BASE_DIR / "overrides.json"))
)

#* --- Trust Material ---
PACKAGE_MANAGER = "apt-get"
PACKAGE_INDEX_REFRESH_COMMAND = ["apt-get", "update"]
PACKAGE_INSTALL_COMMAND = ["apt-get", "install", "-y", "--no-install-recommends"]
TRUST_PACKAGE = "ca-certificates"

#* --- Build ---
SERVICE_BINARY_NAME = "webhook"
BUILD_TOOL = "cargo"
BUILD_COMMAND = ["cargo", "build", "--release", "--bin", SERVICE_BINARY_NAME]
ARTIFACT_RELATIVE_PATH = pathlib.Path("target") / "release" / SERVICE_BINARY_NAME

#* --- Process Settings ---
PROCESS_TITLE = "Webhook - Launcher"
GRACEFUL_SHUTDOWN_TIMEOUT = int(os.getenv("GRACEFUL_SHUTDOWN_TIMEOUT", "10"))  # seconds before force-killing

#* --- Exit Codes ---
EXIT_ENVIRONMENT_ERROR = 1
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127
EXIT_SIGNAL_BASE = 128

#* --- Logging ---
# Same vocabulary and default as the webhook binary itself.
LOG_LEVEL = os.getenv("WEBHOOK_LOG_LEVEL", "warn").lower()
DEFAULT_LOG_LEVEL = "warn"

# Grafana Loki (optional log shipping for the launcher's own output)
LOKI_ENABLED = os.getenv("LOKI_ENABLED", "False").lower() in ('true', '1', 't')
LOKI_URL = os.getenv("LOKI_URL", "http://localhost:3100")
LOKI_ORG_ID = os.getenv("LOKI_ORG_ID", "fake")
LOG_BUFFER_BATCH_SIZE = 200

#* --- MODIFIABLE SETTINGS (Changeable via overrides.json) ---
MODIFIABLE_SETTINGS = {
    "LOG_LEVEL",
    "GRACEFUL_SHUTDOWN_TIMEOUT",
    "LOKI_ENABLED", "LOKI_URL", "LOKI_ORG_ID",
    "LOG_BUFFER_BATCH_SIZE",
}

#* --- Container Descriptor Templates ---
DOCKERFILE_TEMPLATE = """\
# This file is auto-generated by webhook-launcher. Do not edit directly.
FROM {base_image}

WORKDIR {workdir}

RUN {refresh_command} && {install_command} {trust_package}

COPY . .

CMD {startup_command}
"""

# Variant where the launcher itself is the container command. It needs a
# Python interpreter in the image, which the slim Rust image does not ship.
LAUNCHER_DOCKERFILE_TEMPLATE = """\
# This file is auto-generated by webhook-launcher. Do not edit directly.
FROM {base_image}

WORKDIR {workdir}

RUN {refresh_command} && {install_command} python3 python3-pip

COPY . .
RUN python3 -m pip install --no-cache-dir .

CMD ["webhook-launcher", "run"]
"""
