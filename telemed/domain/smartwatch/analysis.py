"""
Deterministic health analysis for wearable readings
Stands in for the LLM-backed weekly summary; every rule here is a fixed threshold
"""

import random
from statistics import mean
from typing import Optional

STEP_GOAL = 8000
TREND_THRESHOLD = 0.1

FEEDBACK_MESSAGES = {
    "motivation": {
        "content": "Keep up your healthy routine today. Small steps lead to big changes.",
        "tone": "encouraging",
        "priority": "low",
    },
    "reminder": {
        "content": "Time to move. How about starting with a short walk?",
        "tone": "gentle",
        "priority": "medium",
    },
    "achievement": {
        "content": "Great progress! You are well on the way to reaching your goals.",
        "tone": "encouraging",
        "priority": "low",
    },
    "suggestion": {
        "content": "Your activity has been low this week. Try adding a 15 minute walk after lunch.",
        "tone": "informative",
        "priority": "high",
    },
}


def generate_dummy_reading(rng: Optional[random.Random] = None) -> dict:
    """Random comprehensive reading in the shape real devices upload"""
    rng = rng or random.Random()
    return {
        "exercise": {
            "type": rng.choice(["walking", "running", "strength", "yoga"]),
            "duration": rng.randint(10, 69),
            "frequency": rng.randint(1, 7),
            "intensity": rng.choice(["low", "medium", "high"]),
            "caloriesBurned": rng.randint(50, 549),
        },
        "sleep": {
            "duration": round(rng.uniform(5, 8), 1),
            "quality": str(rng.randint(1, 5)),
            "deepSleep": rng.randint(60, 179),
            "lightSleep": rng.randint(120, 359),
            "remSleep": rng.randint(60, 179),
        },
        "activity": {
            "steps": rng.randint(2000, 9999),
            "distance": round(rng.uniform(1, 6), 2),
            "activeMinutes": rng.randint(30, 149),
            "caloriesBurned": rng.randint(100, 399),
        },
        "vitals": {
            "heartRate": rng.randint(60, 99),
            "bloodPressure": {
                "systolic": rng.randint(110, 149),
                "diastolic": rng.randint(70, 89),
            },
            "temperature": round(rng.uniform(36, 38), 1),
            "oxygenSaturation": rng.randint(95, 104),
        },
        "otherMetrics": {
            "stressLevel": rng.randint(1, 10),
            "caloriesConsumed": rng.randint(1500, 2499),
            "weight": round(rng.uniform(60, 70), 1),
            "bodyFatPercentage": round(rng.uniform(15, 25), 1),
        },
    }


def _values(readings: list[dict], *path: str) -> list[float]:
    values = []
    for reading in readings:
        node = reading
        for key in path:
            if not isinstance(node, dict) or key not in node:
                node = None
                break
            node = node[key]
        if isinstance(node, (int, float)) and not isinstance(node, bool):
            values.append(float(node))
    return values


def _average(values: list[float]) -> Optional[float]:
    return round(mean(values), 1) if values else None


def _trend(values: list[float]) -> str:
    """Compare the newer half of a chronological series with the older half"""
    if len(values) < 2:
        return "stable"
    half = len(values) // 2
    older = mean(values[:half])
    newer = mean(values[half:])
    if older == 0:
        return "increasing" if newer > 0 else "stable"
    change = (newer - older) / older
    if change > TREND_THRESHOLD:
        return "increasing"
    if change < -TREND_THRESHOLD:
        return "decreasing"
    return "stable"


def summarize(readings: list[dict]) -> dict:
    """Weekly averages over chronologically ordered reading payloads"""
    durations = _values(readings, "exercise", "duration")
    return {
        "averageSteps": _average(_values(readings, "activity", "steps")),
        "averageSleepHours": _average(_values(readings, "sleep", "duration")),
        "averageHeartRate": _average(_values(readings, "vitals", "heartRate")),
        "averageBloodPressure": {
            "systolic": _average(_values(readings, "vitals", "bloodPressure", "systolic")),
            "diastolic": _average(_values(readings, "vitals", "bloodPressure", "diastolic")),
        },
        "exerciseFrequency": sum(1 for d in durations if d > 0),
        "dataPoints": len(readings),
    }


def risk_level(summary: dict) -> str:
    steps = summary.get("averageSteps")
    sleep = summary.get("averageSleepHours")
    pressure = summary.get("averageBloodPressure") or {}
    systolic = pressure.get("systolic")
    diastolic = pressure.get("diastolic")

    if (
        (steps is not None and steps < 3000)
        or (sleep is not None and sleep < 5)
        or (systolic is not None and systolic > 160)
        or (diastolic is not None and diastolic > 100)
    ):
        return "high"
    if (
        (steps is not None and steps < 5000)
        or (sleep is not None and sleep < 6)
        or (systolic is not None and systolic > 140)
        or (diastolic is not None and diastolic > 90)
    ):
        return "medium"
    return "low"


def recommendations_for(summary: dict) -> list[str]:
    recommendations = []
    steps = summary.get("averageSteps")
    sleep = summary.get("averageSleepHours")
    pressure = summary.get("averageBloodPressure") or {}

    if steps is not None and steps < STEP_GOAL:
        recommendations.append(f"Aim for {STEP_GOAL} steps a day; you are averaging {int(steps)}.")
    if sleep is not None and sleep < 7:
        recommendations.append("Try to get at least 7 hours of sleep with a regular bedtime.")
    if (pressure.get("systolic") or 0) > 140 or (pressure.get("diastolic") or 0) > 90:
        recommendations.append("Your blood pressure is elevated. Reduce salt and discuss it with your doctor.")
    if summary.get("exerciseFrequency", 0) < 3:
        recommendations.append("Exercise at least three times a week.")
    if not recommendations:
        recommendations.append("Keep up your current routine.")
    return recommendations


def analyze(readings: list[dict]) -> dict:
    summary = summarize(readings)
    return {
        "summary": summary,
        "recommendations": recommendations_for(summary),
        "riskLevel": risk_level(summary),
        "trends": {
            "steps": _trend(_values(readings, "activity", "steps")),
            "sleep": _trend(_values(readings, "sleep", "duration")),
            "heartRate": _trend(_values(readings, "vitals", "heartRate")),
        },
    }


def choose_feedback(readings: list[dict]) -> dict:
    """Canned feedback picked from the last week's readings"""
    if not readings:
        message_type = "reminder"
    else:
        steps = _values(readings, "activity", "steps")
        average_steps = mean(steps) if steps else None
        if average_steps is not None and average_steps < 5000:
            message_type = "suggestion"
        elif _trend(steps) == "increasing" or (average_steps or 0) >= STEP_GOAL:
            message_type = "achievement"
        else:
            message_type = "motivation"

    message = FEEDBACK_MESSAGES[message_type]
    return {
        "messageType": message_type,
        "content": message["content"],
        "tone": message["tone"],
        "priority": message["priority"],
        "targetMetrics": ["steps", "sleep", "exercise"],
    }
