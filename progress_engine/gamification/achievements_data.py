"""
Built-in onboarding achievement catalog

Used when no ACHIEVEMENT_CATALOG_PATH is configured. Plain dicts so the
same shape can live in a JSON catalog file.
"""

ONBOARDING_ACHIEVEMENTS: list[dict] = [
    # Step-based achievements
    {
        "id": "sacred-geometry-explorer",
        "type": "step_completion",
        "title": "Sacred Geometry Explorer",
        "description": "Discovered the wisdom of sacred geometric patterns",
        "category": "exploration",
        "points": 15,
        "required_step": "sacred-geometry",
    },
    {
        "id": "chakra-awareness",
        "type": "step_completion",
        "title": "Chakra Awareness",
        "description": "Learned about the seven primary energy centers",
        "category": "exploration",
        "points": 20,
        "required_step": "chakras",
    },
    {
        "id": "energy-adept",
        "type": "step_completion",
        "title": "Energy Adept",
        "description": "Learned how to recognize and accumulate energy points",
        "category": "exploration",
        "points": 25,
        "required_step": "energy-points",
    },
    {
        "id": "meditation-initiate",
        "type": "step_completion",
        "title": "Meditation Initiate",
        "description": "Began a mindful meditation practice",
        "category": "exploration",
        "points": 30,
        "required_step": "meditation",
    },
    {
        "id": "reflective-seeker",
        "type": "step_completion",
        "title": "Reflective Seeker",
        "description": "Started a practice of self-reflection",
        "category": "exploration",
        "points": 35,
        "required_step": "reflection",
    },
    {
        "id": "quantum-voyager",
        "type": "step_completion",
        "title": "Quantum Voyager",
        "description": "Completed onboarding",
        "category": "milestones",
        "points": 50,
        "required_step": "complete",
    },

    # Interaction-based achievements
    {
        "id": "mindful-explorer",
        "type": "interaction",
        "title": "Mindful Explorer",
        "description": "Started a meditation practice session",
        "category": "exploration",
        "points": 20,
        "required_interaction": "meditation_practice_started",
    },

    # Multi-step achievements
    {
        "id": "chakra-master",
        "type": "multi_step_completion",
        "title": "Chakra Master",
        "description": "Completed the chakra, meditation and reflection steps",
        "category": "milestones",
        "points": 45,
        "required_steps": ["chakras", "meditation", "reflection"],
    },
    {
        "id": "consistent-practitioner",
        "type": "multi_step_completion",
        "title": "Consistent Practitioner",
        "description": "Completed the first three onboarding steps",
        "category": "milestones",
        "points": 40,
        "required_steps": ["sacred-geometry", "chakras", "energy-points"],
    },

    # Streak achievements
    {
        "id": "three-day-streak",
        "type": "streak",
        "title": "Three-Day Resonance",
        "description": "Practiced three days in a row",
        "category": "consistency",
        "points": 30,
        "streak_days": 3,
    },
    {
        "id": "seven-day-streak",
        "type": "streak",
        "title": "Seven-Day Harmony",
        "description": "Practiced seven days in a row",
        "category": "consistency",
        "points": 75,
        "streak_days": 7,
    },
    {
        "id": "fourteen-day-streak",
        "type": "streak",
        "title": "Fortnight Flow",
        "description": "Practiced every day for two weeks",
        "category": "consistency",
        "points": 150,
        "streak_days": 14,
    },
    {
        "id": "thirty-day-streak",
        "type": "streak",
        "title": "Lunar Cycle Master",
        "description": "Practiced every day for thirty days",
        "category": "consistency",
        "points": 300,
        "streak_days": 30,
    },

    # Progressive achievements with tiers
    {
        "id": "reflection-journey",
        "type": "progressive_tiered",
        "title": "Reflection Journey",
        "description": "Documented growth through reflections",
        "category": "consistency",
        "tracked_metric": "reflections",
        "tier_thresholds": [5, 15, 30, 50, 100],
        "points_per_tier": [25, 50, 75, 100, 200],
    },
    {
        "id": "meditation-depth",
        "type": "progressive_tiered",
        "title": "Meditation Depth",
        "description": "Deepened meditation practice over time",
        "category": "consistency",
        "tracked_metric": "meditation_minutes",
        # 1h, 3h, 6h, 12h, 24h
        "tier_thresholds": [60, 180, 360, 720, 1440],
        "points_per_tier": [30, 60, 120, 240, 500],
    },

    # Milestone achievements
    {
        "id": "chakra-activation-complete",
        "type": "milestone_threshold",
        "title": "Full Spectrum Activation",
        "description": "Activated all seven chakras at least once",
        "category": "milestones",
        "points": 100,
        "tracked_metric": "unique_chakras_activated",
        "threshold": 7,
    },
    {
        "id": "energy-centurion",
        "type": "milestone_threshold",
        "title": "Energy Centurion",
        "description": "Accumulated 100 energy points",
        "category": "milestones",
        "points": 50,
        "tracked_metric": "total_energy_points",
        "threshold": 100,
    },
    {
        "id": "wisdom-seeker",
        "type": "milestone_threshold",
        "title": "Wisdom Seeker",
        "description": "Explored 10 wisdom resources",
        "category": "milestones",
        "points": 75,
        "tracked_metric": "wisdom_resources_explored",
        "threshold": 10,
    },
]
