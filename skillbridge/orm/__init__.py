from .base import Base

from .user_profile import UserProfile
from .simulation_attempt import SimulationAttempt
from .catalog import RoadmapTask, OpportunityListing
from .community import SkillSwap, ProblemPod, PodResponse
