from ._cavi import Cavi, ThetaConvergence
from ._mixture import RobbinsMonro
from ._smoother import smooth_trajectories, pseudo_observation
from ._utils import EPS, MIN_VAR, AUX_TOL, DEFAULT_POP_SIZE

__all__ = [
    "Cavi",
    "ThetaConvergence",
    "RobbinsMonro",
    "smooth_trajectories",
    "pseudo_observation",
]
