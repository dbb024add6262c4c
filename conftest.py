# Keeps the repository root importable when running pytest without installing.
