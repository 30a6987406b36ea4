"""Seed questionnaire.

Weights run 1-10; anything at 8 or above is shown to members as a
high-importance question.
"""

QUESTIONS = [
    # personality
    {
        "question_id": "pers_social_energy",
        "text": "After a long week, how do you recharge?",
        "category": "personality",
        "type": "scale",
        "min_value": 1,
        "max_value": 10,
        "weight": 4,
    },
    {
        "question_id": "pers_planner",
        "text": "Do you prefer to plan things well in advance?",
        "category": "personality",
        "type": "boolean",
        "weight": 3,
    },
    {
        "question_id": "pers_decision_style",
        "text": "How do you usually make big decisions?",
        "category": "personality",
        "type": "multiple",
        "options": ["Gut feeling", "Pros and cons list", "Talk it through with others", "Sleep on it"],
        "weight": 3,
    },
    {
        "question_id": "pers_spontaneity",
        "text": "How spontaneous are you?",
        "category": "personality",
        "type": "scale",
        "min_value": 1,
        "max_value": 10,
        "weight": 2,
    },
    # lifestyle
    {
        "question_id": "life_fitness",
        "text": "How important is physical fitness to you?",
        "category": "lifestyle",
        "type": "scale",
        "min_value": 1,
        "max_value": 10,
        "weight": 3,
    },
    {
        "question_id": "life_weekend",
        "text": "What's your ideal weekend?",
        "category": "lifestyle",
        "type": "multiple",
        "options": [
            "Staying home and relaxing",
            "Going out and socializing",
            "Outdoor adventures",
            "Learning something new",
        ],
        "weight": 2,
    },
    {
        "question_id": "life_pets",
        "text": "Would you like to share your home with pets?",
        "category": "lifestyle",
        "type": "boolean",
        "weight": 5,
    },
    # values
    {
        "question_id": "val_relationship_core",
        "text": "What's most important in a relationship?",
        "category": "values",
        "type": "multiple",
        "options": ["Trust and honesty", "Fun and adventure", "Emotional support", "Shared goals"],
        "weight": 5,
    },
    {
        "question_id": "val_children",
        "text": "Do you want children someday?",
        "category": "values",
        "type": "boolean",
        "weight": 10,
    },
    {
        "question_id": "val_career_balance",
        "text": "How much should career come before personal life?",
        "category": "values",
        "type": "scale",
        "min_value": 1,
        "max_value": 10,
        "weight": 6,
    },
    # communication
    {
        "question_id": "comm_conflict",
        "text": "How do you handle conflicts in relationships?",
        "category": "communication",
        "type": "multiple",
        "options": ["Talk it out immediately", "Take time to think first", "Avoid confrontation", "Seek compromise"],
        "weight": 5,
    },
    {
        "question_id": "comm_frequency",
        "text": "How often do you prefer to communicate with your partner?",
        "category": "communication",
        "type": "multiple",
        "options": ["Throughout the day", "A few times daily", "Once a day", "Every few days"],
        "weight": 4,
    },
    {
        "question_id": "comm_directness",
        "text": "How direct are you when something bothers you?",
        "category": "communication",
        "type": "scale",
        "min_value": 1,
        "max_value": 10,
        "weight": 4,
    },
    # relationship
    {
        "question_id": "rel_commitment",
        "text": "Are you looking for a long-term relationship?",
        "category": "relationship",
        "type": "boolean",
        "weight": 9,
    },
    {
        "question_id": "rel_alone_time",
        "text": "How much time apart do you need in a relationship?",
        "category": "relationship",
        "type": "scale",
        "min_value": 1,
        "max_value": 10,
        "weight": 5,
    },
    {
        "question_id": "rel_love_language",
        "text": "How do you most like to show affection?",
        "category": "relationship",
        "type": "multiple",
        "options": ["Words of affirmation", "Quality time", "Acts of service", "Physical touch", "Gifts"],
        "weight": 4,
    },
    # compatibility
    {
        "question_id": "compat_faith",
        "text": "Should a partner share your religious or spiritual views?",
        "category": "compatibility",
        "type": "boolean",
        "weight": 8,
    },
    {
        "question_id": "compat_finances",
        "text": "How would you handle shared finances?",
        "category": "compatibility",
        "type": "multiple",
        "options": ["Fully joint", "Partly joint", "Fully separate"],
        "weight": 7,
    },
    {
        "question_id": "compat_relocation",
        "text": "How open are you to relocating for a partner?",
        "category": "compatibility",
        "type": "scale",
        "min_value": 1,
        "max_value": 10,
        "weight": 6,
    },
]
