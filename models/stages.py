# Fixed class partitions of the roster and their display labels

STAGE_LABELS = {
    "angels": "ملايكة",
    "grade1": "سنة أولى",
    "grade2": "سنة تانية",
    "grade3": "سنة تالتة",
    "grade4": "سنة رابعة",
    "grade5": "سنة خامسة",
    "grade6": "سنة سادسة",
}

TUSBHA_STAGES = ("grade3", "grade4", "grade5", "grade6")


def stage_label(stage):
    return STAGE_LABELS.get(stage, stage)


def is_valid_stage(stage, kind=None):
    if kind == "tusbha":
        return stage in TUSBHA_STAGES
    return stage in STAGE_LABELS
