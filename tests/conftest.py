from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from shared.observability.logger import configure_logging

# Route log output away from stdout so CLI tests can parse what they print.
configure_logging(service_name="patient_registry", level="DEBUG", sink=sys.__stderr__)
