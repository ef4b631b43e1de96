# apollo/expressions/grammar.py

# Precedence, lowest first: ?:, ||, &&, !, comparisons, + -, * / %, unary -, postfix
EXPRESSION_GRAMMAR = r"""
    ?start: expr

    ?expr: or_expr
         | or_expr "?" expr ":" expr      -> conditional

    ?or_expr: and_expr
            | or_expr "||" and_expr       -> or_

    ?and_expr: not_expr
             | and_expr "&&" not_expr     -> and_

    ?not_expr: comparison
             | "!" not_expr               -> not_

    ?comparison: sum
               | sum "==" sum             -> eq
               | sum "!=" sum             -> ne
               | sum "<" sum              -> lt
               | sum "<=" sum             -> le
               | sum ">" sum              -> gt
               | sum ">=" sum             -> ge

    ?sum: product
        | sum "+" product                 -> add
        | sum "-" product                 -> sub

    ?product: unary
            | product "*" unary           -> mul
            | product "/" unary           -> div
            | product "%" unary           -> mod

    ?unary: postfix
          | "-" unary                     -> neg

    ?postfix: atom
            | postfix "[" expr "]"        -> index
            | postfix "." NAME            -> attr

    ?atom: NUMBER                         -> number
         | ESCAPED_STRING                 -> string
         | "true"                         -> true
         | "false"                        -> false
         | "null"                         -> null
         | NAME "(" [arguments] ")"       -> call
         | NAME                           -> var
         | "[" [arguments] "]"            -> list
         | "(" expr ")"

    arguments: expr ("," expr)* ","?

    NAME: /[A-Za-z_][A-Za-z0-9_]*/
    NUMBER: /0x[0-9a-fA-F]+/ | /(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?/

    %import common.ESCAPED_STRING
    %import common.WS
    %ignore WS
"""
