"""
Infrastructure Layer
=====================

Technical adapters shared by the bounded contexts:
- database: async SQLAlchemy engine and sessions
- llm: embedding and chat completion providers
- vectorstore: Milvus similarity search
- scheduler: detached background jobs
"""
