"""qmaze - Q-learning on a curriculum of growing mazes.

A tabular Q-learning agent learns to walk from start to end of a grid maze.
Between levels the maze is made more complex by randomized, cost-budgeted
operators, and every level is scored by a complexity function.
"""

__version__ = "1.0.0"
