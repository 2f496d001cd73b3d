from classgrid.models.group_setting import GroupSettingRecord  # noqa: F401
from classgrid.models.schedule_version import ScheduleStatus, ScheduleVersion  # noqa: F401
from classgrid.models.scheduling_policy import SchedulingPolicyRecord  # noqa: F401
from classgrid.models.student import Student  # noqa: F401
