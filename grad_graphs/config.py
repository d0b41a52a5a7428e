DEBUG_GRADIENT = False
DEBUG_EXECUTION = False

# Appended to the name of every node cloned by the mirror builder.
MIRROR_SUFFIX = "_mirror"
