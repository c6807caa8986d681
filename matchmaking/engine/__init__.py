"""
Matchmaking Engine - session group assignment for attendees.

This package contains:
- Matchmaker: Two-phase pipeline (initial assignment, then refinement)
- ScoringModel: Category affinity and social score
- InitialAssignmentSolver: OR-Tools min-cost matching into near-equal groups
- LocalSearchRefiner: Pairwise swap improvement with pluggable policies
- ThemeCombinationSelector: Exhaustive theme search per group
- MatchLogger: Run log of progress, swaps and data-quality warnings
- Solution analysis: Post-run grouping analysis
"""

from .assignment import (
    AssignmentCostModel,
    AssignmentResult,
    InitialAssignmentSolver,
    build_slot_map,
    compute_group_capacities,
    solve_assignment,
)
from .errors import InvalidInputError, MatchmakingError, SolverError
from .feasibility import check_data_quality
from .logging import MatchLogger
from .matchmaker import Matchmaker, MatchOutput
from .refiner import (
    BestImprovementPolicy,
    FirstImprovementPolicy,
    LocalSearchRefiner,
    Placement,
    RefinementResult,
    SwapPolicy,
    SwapRecord,
    swap_policy_for,
)
from .scoring import GroupFrame, ScoringModel
from .solution import analyze_grouping, calculate_group_sizes, find_avoid_conflicts
from .themes import ThemeCombinations, ThemeCombinationSelector, ThemeSuggestion

__all__ = [
    "AssignmentCostModel",
    "AssignmentResult",
    "BestImprovementPolicy",
    "FirstImprovementPolicy",
    "GroupFrame",
    "InitialAssignmentSolver",
    "InvalidInputError",
    "LocalSearchRefiner",
    "MatchLogger",
    "MatchOutput",
    "Matchmaker",
    "MatchmakingError",
    "Placement",
    "RefinementResult",
    "ScoringModel",
    "SolverError",
    "SwapPolicy",
    "SwapRecord",
    "ThemeCombinationSelector",
    "ThemeCombinations",
    "ThemeSuggestion",
    "analyze_grouping",
    "build_slot_map",
    "calculate_group_sizes",
    "check_data_quality",
    "compute_group_capacities",
    "find_avoid_conflicts",
    "solve_assignment",
    "swap_policy_for",
]
