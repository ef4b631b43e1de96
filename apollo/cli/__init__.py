# apollo/cli/__init__.py
