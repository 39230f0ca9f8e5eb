"""Updates shipped with uplift. Modules are named `u_NNN_description.py`."""
