"""The quiz itself: five questions, four options each."""
from .types import Question

QUESTIONS: tuple[Question, ...] = (
    Question(
        "When faced with conflict, you prefer:",
        (
            "Calm negotiation and diplomacy",
            "Defensive manoeuvres to protect others",
            "Swift offensive action to end it quickly",
            "Listening to the Force for guidance",
        ),
    ),
    Question(
        "Which training appeals to you the most?",
        (
            "Lightsaber forms and combat techniques",
            "Meditation and expanding your connection to the Force",
            "Tactical leadership and battlefield strategy",
            "Deep study of ancient Jedi texts and lore",
        ),
    ),
    Question(
        "Pick the trait you value most:",
        ("Courage", "Wisdom", "Compassion", "Discipline"),
    ),
    Question(
        "Your ideal lightsaber is:",
        (
            "A single-bladed weapon with a classic hilt",
            "A curved hilt emphasising finesse",
            "A double-bladed staff for versatility",
            "A shoto or short blade paired with the Force",
        ),
    ),
    Question(
        "Choose the destiny that resonates with you:",
        (
            "Guarding the peace across the galaxy",
            "Teaching Padawans and passing on knowledge",
            "Exploring unknown regions and uncovering secrets",
            "Leading troops into battle against tyranny",
        ),
    ),
)
