# Project vault: boards, stories, projects and epics on disk.
#
# Components:
#   errors.py      - Error kinds raised by stores and the autofill client
#   schema.py      - Data model (Board, Task, Project, Epic) and command payloads
#   frontmatter.py - YAML frontmatter + Markdown body codec
#   query.py       - Title sorting, parent filters, column partitioning
#   store.py       - Storage interface shared by both backends
#   vault_store.py - One Markdown file per entity
#   json_store.py  - Single JSON document
#   config.py      - Runtime configuration (YAML file + environment)
#   autofill.py    - LLM-powered story field autofill
#   commands.py    - Command surface with flat error messages
