from adventures.utils import levels


class ProgressionPolicy:
    """Tunable numbers behind XP, streak bonuses and lesson passing.

    Built once from the Flask config and shared read-only by every request.
    """

    def __init__(self, pass_score=70, level_base_xp=levels.BASE_XP,
                 level_exponent=levels.LEVEL_EXPONENT,
                 streak_bonus_tiers=((3, 1.1), (7, 1.25), (30, 1.5)),
                 reveal_cost_ratio=0.5, reveal_level_damping=0.1,
                 max_free_enrollments=2):
        tiers = tuple(sorted((int(days), float(mult)) for days, mult in streak_bonus_tiers))
        last = 1.0
        for days, mult in tiers:
            if days < 1 or mult < last:
                raise ValueError(f'Streak bonus tiers must be non-decreasing, got {tiers!r}')
            last = mult

        self.pass_score = pass_score
        self.level_base_xp = level_base_xp
        self.level_exponent = level_exponent
        self.streak_bonus_tiers = tiers
        self.reveal_cost_ratio = reveal_cost_ratio
        self.reveal_level_damping = reveal_level_damping
        self.max_free_enrollments = max_free_enrollments

    @classmethod
    def from_config(cls, config):
        return cls(
            pass_score=config.get('LESSON_PASS_SCORE', 70),
            level_base_xp=config.get('LEVEL_BASE_XP', levels.BASE_XP),
            level_exponent=config.get('LEVEL_EXPONENT', levels.LEVEL_EXPONENT),
            streak_bonus_tiers=config.get('STREAK_BONUS_TIERS', ((3, 1.1), (7, 1.25), (30, 1.5))),
            reveal_cost_ratio=config.get('REVEAL_COST_RATIO', 0.5),
            reveal_level_damping=config.get('REVEAL_LEVEL_DAMPING', 0.1),
            max_free_enrollments=config.get('MAX_FREE_COURSE_ENROLLMENTS', 2),
        )

    def level_from_xp(self, total_xp):
        return levels.level_from_xp(total_xp, self.level_base_xp, self.level_exponent)

    def total_xp_for_level(self, level):
        return levels.total_xp_for_level(level, self.level_base_xp, self.level_exponent)

    def level_info(self, total_xp, current_level=None):
        return levels.level_info(total_xp, current_level, self.level_base_xp, self.level_exponent)

    def __repr__(self):
        return f'<ProgressionPolicy pass={self.pass_score} tiers={self.streak_bonus_tiers}>'
