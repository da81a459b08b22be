"""
skillbridge/services/simulation_service.py
Simulation scenario templates

Each phase has one deterministic scenario. A topic name, when given,
is woven into the title and the scenario text.
"""
from typing import Any, Dict, Optional, Union

from skillbridge.services.progression_engine import Phase, parse_phase

SCENARIOS: Dict[Phase, Dict[str, Any]] = {
    Phase.LIFE_SKILLS: {
        "title": "The overloaded week",
        "scenario": (
            "You have an exam on Friday, a shift at work on Wednesday and a friend "
            "asking for help moving on Thursday. Explain how you would schedule the "
            "week, what you would decline, and how you would communicate it."
        ),
        "tasks": [
            {"id": "t1", "prompt": "List your commitments in priority order."},
            {"id": "t2", "prompt": "Describe how you would communicate any changes."},
        ],
        "rubric": [
            {"criterion": "Prioritization", "weight": 0.5},
            {"criterion": "Communication", "weight": 0.5},
        ],
    },
    Phase.MONEY_SKILLS: {
        "title": "The surprise expense",
        "scenario": (
            "Your phone breaks and a repair costs 120 dollars, two weeks before "
            "payday. Explain how you would adjust your budget, which expenses you "
            "would cut, and how you would rebuild your savings afterwards."
        ),
        "tasks": [
            {"id": "t1", "prompt": "Show the budget adjustment for the next two weeks."},
            {"id": "t2", "prompt": "Describe a savings plan to recover."},
        ],
        "rubric": [
            {"criterion": "Budget accuracy", "weight": 0.6},
            {"criterion": "Savings plan", "weight": 0.4},
        ],
    },
    Phase.PRACTICE: {
        "title": "The unclear client brief",
        "scenario": (
            "A client asks for a logo 'that pops' by tomorrow and offers no other "
            "details. Explain which questions you would ask, how you would scope "
            "the deliverable, and how you would agree on a deadline and price."
        ),
        "tasks": [
            {"id": "t1", "prompt": "Write the questions you would send the client."},
            {"id": "t2", "prompt": "Propose a scope, deadline and price."},
        ],
        "rubric": [
            {"criterion": "Requirement gathering", "weight": 0.4},
            {"criterion": "Scoping", "weight": 0.3},
            {"criterion": "Negotiation", "weight": 0.3},
        ],
    },
    Phase.EARN: {
        "title": "The late payment",
        "scenario": (
            "You delivered a project three weeks ago and the client has not paid "
            "the invoice. Explain how you would follow up, what you would write, "
            "and how you would protect yourself on future contracts."
        ),
        "tasks": [
            {"id": "t1", "prompt": "Draft the follow-up message."},
            {"id": "t2", "prompt": "List contract terms you would add next time."},
        ],
        "rubric": [
            {"criterion": "Professional tone", "weight": 0.5},
            {"criterion": "Risk protection", "weight": 0.5},
        ],
    },
}


def generate_simulation(phase: Union[Phase, str], topic_name: Optional[str] = None) -> Dict[str, Any]:
    """Return the scenario for `phase`, personalised with `topic_name`."""
    phase = parse_phase(phase)
    template = SCENARIOS[phase]
    topic = (topic_name or "").strip()

    title = template["title"]
    scenario = template["scenario"]
    if topic:
        title = f"{title}: {topic}"
        scenario = f"{scenario} Relate your answer to {topic}."

    return {
        "phase": phase.value,
        "title": title,
        "scenario": scenario,
        "tasks": [dict(task) for task in template["tasks"]],
        "rubric": [dict(item) for item in template["rubric"]],
    }
