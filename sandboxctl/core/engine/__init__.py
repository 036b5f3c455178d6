"""Recipe engines — compile recipes into task trees and run them.

    from sandboxctl.core.engine.base import RecipeEngine
    from sandboxctl.core.engine.demo_config import DemoConfigEngine
"""
