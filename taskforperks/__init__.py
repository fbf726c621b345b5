"""TaskForPerks: claim service for the task-for-perks marketplace."""
