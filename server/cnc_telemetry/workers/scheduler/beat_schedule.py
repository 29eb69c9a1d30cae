from __future__ import annotations
"""server/cnc_telemetry/workers/scheduler/beat_schedule.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Planification périodique de la génération.

Trois cadences indépendantes (offset outil, avance, outil en cours) qui
déclenchent TOUTES la même génération complète (tous axes, toutes machines) :
les données sont donc régénérées au rythme de la cadence la plus rapide.
"""
from cnc_telemetry.core.config import Settings

GENERATE_TASK = "tasks.generate"


def build_beat_schedule(settings: Settings) -> dict[str, dict]:
    return {
        "tool-offset": {
            "task": GENERATE_TASK,
            "schedule": float(settings.TOOL_OFFSET_INTERVAL_SECONDS),
        },
        "feedrate": {
            "task": GENERATE_TASK,
            "schedule": float(settings.FEEDRATE_INTERVAL_SECONDS),
        },
        "tool-in-use": {
            "task": GENERATE_TASK,
            "schedule": float(settings.TOOL_IN_USE_INTERVAL_SECONDS),
        },
    }
