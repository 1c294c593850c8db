# This module handles context engineering for a chat turn

# +---------------------+     +---------------------+
# |   Session events    |     |   Knowledge base    |   (Indexed, searched per turn)
# |---------------------|     |---------------------|
# | Raw Assurance events|     | Documentation chunks|
# | Event embeddings    |     | Chunk embeddings    |
# +---------------------+     +---------------------+
#            \                          /
#             \   retrieve in parallel /
#              \                      /
# +------------------------------------------+
# |          Budgeted context                |   (Assembled per intent)
# |------------------------------------------|
# | Events slice   (debug 60%, general 20%)  |
# | Docs slice     (debug 10%, general 50%)  |
# | History slice  (30%, newest first)       |
# +------------------------------------------+
#         |
#         v
#   [Single generation prompt]
