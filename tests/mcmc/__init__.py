"""Statistical tests of the sampler updates."""
