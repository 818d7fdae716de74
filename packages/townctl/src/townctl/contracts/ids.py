from __future__ import annotations

CONFIG = "townctl.config.v1"
DOCTOR_REPORT = "townctl.doctor-report.v1"
ERROR = "townctl.error.v1"
