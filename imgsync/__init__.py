"""Image drift reconciler (imgsync).

Keeps a single Cloud Run service on the image digest that the registry
currently tags as "stable":
 - read the service's revisions and pick the active one
 - resolve the stable digest from the registry's tag manifest
 - if they differ, roll out a new revision that reuses the active
   revision's runtime configuration and wait for it to become active

One invocation reconciles one service; scheduling is left to the caller.
"""
