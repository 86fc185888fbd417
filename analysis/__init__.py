"""
Analysis package for the density maps

Natural-breaks classification, color ramps, feature styling and legends for
the farmer and commodity density choropleths.
"""
