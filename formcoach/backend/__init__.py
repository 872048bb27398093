# formcoach/backend/__init__.py
