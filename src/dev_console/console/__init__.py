"""
Console subpackage: parser, registry, dispatcher, transcript, gesture
detection, the engine that ties them together, and the terminal front-ends.
"""
