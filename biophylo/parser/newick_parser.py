import ast
import logging
from typing import Any, Dict, List, Tuple

from biophylo.constants import looks_like_number
from biophylo.exceptions import BadFormatError
from biophylo.forest.node import Node
from biophylo.forest.tree import Tree

logger = logging.getLogger(__name__)


# ===================================================================
# 1. METADATA PROCESSING FUNCTIONS
# ===================================================================


def split_token(token: str) -> Tuple[str, Any]:
    """
    Split a metadata token into name and value parts.

    Handles both "name=value" and "name:value"; a bare name maps to True.

    Args:
        token: A string token in format "name=value" or "name:value"

    Returns:
        Tuple of (name, parsed_value) where parsed_value could be string, int, or float
    """
    if "=" in token:
        name, value = token.split("=", 1)
    elif ":" in token:
        name, value = token.split(":", 1)
    else:
        return token, True

    try:
        # Literals cover quoted strings and numbers
        parsed_value = ast.literal_eval(value)
    except (ValueError, SyntaxError):
        parsed_value = value

    return name, parsed_value


def parse_metadata(data: str) -> Dict[str, Any]:
    """
    Parse the text of a ``[...]`` comment into a dictionary.

    NHX comments (``&&NHX:k=v:k2=v2``) are split on colons, Mesquite-style comments
    (``%k=v k2=v2``) and generic ones (``k=v,k2=v2``) on commas and spaces.
    """
    data = data.strip()
    if data.startswith("&&NHX:"):
        tokens = data[6:].split(":")
    else:
        if data.startswith("%"):
            data = data[1:]
        tokens = data.replace(";", ",").replace(" ", ",").split(",")
    metadata: Dict[str, Any] = {}
    for token in tokens:
        if token.strip():
            name, value = split_token(token.strip())
            metadata[name] = value
    return metadata


def flush_meta_buffer(meta_buffer: List[str], stack: List[Node]) -> None:
    """Store the buffered comment as generic annotations of the current node."""
    metadata = parse_metadata("".join(meta_buffer))
    if metadata and stack:
        for key, value in metadata.items():
            stack[-1].set_generic(key, value)
    meta_buffer.clear()


# ===================================================================
# 2. BUFFER PROCESSING FUNCTIONS
# ===================================================================


def flush_character_buffer(buffer: List[str], stack: List[Node]) -> None:
    """Assign the buffered characters as the name of the current node."""
    if stack and buffer:
        stack[-1].set_name("".join(buffer))
    buffer.clear()


def flush_length_buffer(buffer: List[str], stack: List[Node]) -> None:
    """
    Assign the buffered characters as the branch length of the current node.

    Raises:
        BadFormatError: If the buffer content is not a number
    """
    buffer_value = "".join(buffer).strip()
    buffer.clear()
    if not stack or not buffer_value:
        return
    if not looks_like_number(buffer_value):
        raise BadFormatError(f"Branch length {buffer_value!r} is not a number")
    stack[-1].set_branch_length(buffer_value)


def flush_buffer(buffer: List[str], stack: List[Node], mode: str) -> None:
    if mode == "character_reader":
        flush_character_buffer(buffer, stack)
    elif mode == "length_reader":
        flush_length_buffer(buffer, stack)


# ===================================================================
# 3. NODE STACK MANAGEMENT FUNCTIONS
# ===================================================================


def init_nodestack() -> List[Node]:
    return [Node()]


def create_new_node(stack: List[Node]) -> List[Node]:
    """Create a node as the last daughter of the top of the stack and push it."""
    parent = stack[-1]
    new_node = Node()
    new_node._insert_into(parent)
    stack.append(new_node)
    return stack


def close_node(stack: List[Node]) -> List[Node]:
    stack.pop()
    return stack


# ===================================================================
# 4. CORE PARSING FUNCTIONS
# ===================================================================


def _parse_newick(tokens: str) -> List[Node]:
    """
    Return the root nodes of all trees in the token string.

    Low-level parser working character by character; whitespace outside comments is
    ignored.
    """
    roots: List[Node] = []
    buffer: List[str] = []
    meta_buffer: List[str] = []
    mode = "character_reader"
    node_stack: List[Node] = []
    depth = 0

    for char in tokens:
        if mode == "metadata_reader":
            if char == "]":
                flush_meta_buffer(meta_buffer, node_stack)
                mode = "character_reader"
            else:
                meta_buffer.append(char)
            continue

        if char.isspace():
            continue

        if not node_stack and char != ";":
            node_stack = init_nodestack()

        if char == "(":
            depth += 1
            create_new_node(node_stack)
            mode = "character_reader"

        elif char == ")":
            depth -= 1
            if depth < 0:
                raise BadFormatError("Unbalanced parentheses in Newick string")
            flush_buffer(buffer, node_stack, mode)
            close_node(node_stack)
            mode = "character_reader"

        elif char == ",":
            if len(node_stack) < 2:
                raise BadFormatError("Comma outside parentheses in Newick string")
            flush_buffer(buffer, node_stack, mode)
            close_node(node_stack)
            create_new_node(node_stack)
            mode = "character_reader"

        elif char == ":":
            flush_buffer(buffer, node_stack, mode)
            mode = "length_reader"

        elif char == "[":
            flush_buffer(buffer, node_stack, mode)
            mode = "metadata_reader"

        elif char == ";":
            if depth != 0:
                raise BadFormatError("Unbalanced parentheses in Newick string")
            flush_buffer(buffer, node_stack, mode)
            if node_stack:
                roots.append(node_stack[0])
            node_stack = []
            mode = "character_reader"

        else:
            buffer.append(char)

    if mode == "metadata_reader":
        raise BadFormatError("Unterminated comment in Newick string")
    if node_stack:
        if depth != 0:
            raise BadFormatError("Unbalanced parentheses in Newick string")
        flush_buffer(buffer, node_stack, mode)
        roots.append(node_stack[0])

    return roots


# ===================================================================
# 5. PUBLIC API FUNCTIONS
# ===================================================================


def parse_newick(tokens: str) -> List[Tree]:
    """
    Parse a Newick string holding one or more ``;``-terminated trees.

    Node names, branch lengths, internal labels and ``[...]`` comments (stored as generic
    annotations) are read.

    Returns:
        One Tree per tree in the string, nodes inserted in pre-order
    """
    trees: List[Tree] = []
    for root in _parse_newick(tokens):
        tree = Tree()
        tree.insert(root)
        trees.append(tree)
    logger.debug(f"Parsed {len(trees)} Newick trees")
    return trees
