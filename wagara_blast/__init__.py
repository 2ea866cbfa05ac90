"""
Wagara Blast - tile-matching puzzle rules engine.

The engine lives in ``wagara_blast.wagara_core``; engine tuning and the
static level table ship alongside as game_config.yaml and levels.yaml.
"""
